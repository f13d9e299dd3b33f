import io

import pytest

from spacevm.builder import build_program
from spacevm.config import ExecutionConfig
from spacevm.core.instruction import (
    ADD,
    DISCARD,
    DIVIDE,
    DUPLICATE,
    HALT,
    MODULO,
    MULTIPLY,
    PRINT_CHAR,
    PRINT_NUMBER,
    READ_CHAR,
    READ_NUMBER,
    RETRIEVE,
    RETURN,
    STORE,
    SUBTRACT,
    SWAP,
    call,
    jump,
    jump_negative,
    jump_zero,
    push,
)
from spacevm.decoder import decode_text
from spacevm.engine.executor import ExecutionState, ExecutionStatus, Executor, evaluate
from spacevm.engine.io import BufferWriter, LineReader
from spacevm.errors import (
    ArithmeticFault,
    CallDepthExceeded,
    EndOfInput,
    ExecutionError,
    InvalidCharacter,
    InvalidNumericInput,
    StackUnderflow,
    UnboundAddress,
    UndefinedLabel,
)


def run(program, input_text=""):
    writer = BufferWriter()
    result = evaluate(program, LineReader.from_text(input_text), writer)
    return result, writer.getvalue()


def program_of(*instructions):
    return build_program(lambda b: b.emit(*instructions))


def test_execution_state():
    state = ExecutionState()
    state.push(10)
    state.push(20)

    assert state.pop() == 20
    assert state.stack == [10]
    state.store(3, 7)
    assert state.retrieve(3) == 7
    with pytest.raises(UnboundAddress):
        state.retrieve(4)
    state.pop()
    with pytest.raises(StackUnderflow):
        state.pop()


def test_hello_world(hello_world_program):
    result, output = run(hello_world_program)
    assert output == "Hello world!"
    assert result.status is ExecutionStatus.HALTED
    assert result.halted
    assert result.stack == []


def test_hello_world_from_source(hello_world_source):
    result, output = run(decode_text(hello_world_source))
    assert output == "Hello world!"
    assert result.halted


def test_read_char_then_print():
    program = program_of(push(0), READ_CHAR, push(0), RETRIEVE, PRINT_CHAR, HALT)
    result, output = run(program, "Z")
    assert output == "Z"
    assert result.heap == {0: ord("Z")}


def test_read_char_takes_first_character_of_line():
    program = program_of(push(3), READ_CHAR, push(4), READ_CHAR)
    result, _ = run(program, "abc\nxyz")
    assert result.heap == {3: ord("a"), 4: ord("x")}


def test_read_char_on_empty_line_stores_newline():
    program = program_of(push(1), READ_CHAR)
    result, _ = run(program, "\n")
    assert result.heap == {1: 10}


def test_read_number_uses_first_token():
    program = program_of(push(0), READ_NUMBER, push(0), RETRIEVE, PRINT_NUMBER)
    _, output = run(program, "  -42 17")
    assert output == "-42"


def test_read_number_rejects_text():
    program = program_of(push(0), READ_NUMBER, push(0), RETRIEVE, PRINT_CHAR, HALT)
    with pytest.raises(InvalidNumericInput):
        run(program, "Zoop")


@pytest.mark.parametrize("instr", [READ_CHAR, READ_NUMBER])
def test_read_past_end_of_input(instr):
    with pytest.raises(EndOfInput):
        run(program_of(push(0), instr), "")


def test_reader_can_be_any_text_stream():
    program = program_of(push(0), READ_NUMBER, push(0), RETRIEVE, PRINT_NUMBER)
    writer = io.StringIO()
    evaluate(program, io.StringIO("12\n"), writer)
    assert writer.getvalue() == "12"


def test_print_number_writes_decimal_text():
    _, output = run(program_of(push(1234), PRINT_NUMBER, push(-7), PRINT_NUMBER))
    assert output == "1234-7"


def test_print_char_rejects_negative_code():
    with pytest.raises(InvalidCharacter):
        run(program_of(push(-1), PRINT_CHAR))


def test_stack_operations():
    result, _ = run(program_of(push(1), push(2), SWAP, DUPLICATE, push(9), DISCARD))
    assert result.stack == [2, 1, 1]


@pytest.mark.parametrize(
    "op, left, right, expected",
    [
        (ADD, 7, 3, 10),
        (SUBTRACT, 7, 3, 4),
        (SUBTRACT, 3, 7, -4),
        (MULTIPLY, -7, 3, -21),
        (DIVIDE, 7, 2, 3),
        (DIVIDE, -7, 2, -3),
        (MODULO, 7, 3, 1),
        (MODULO, -7, 2, -1),
        (MODULO, 7, -2, 1),
    ],
)
def test_arithmetic_pops_right_then_left(op, left, right, expected):
    result, _ = run(program_of(push(left), push(right), op))
    assert result.stack == [expected]


def test_arithmetic_does_not_wrap():
    result, _ = run(program_of(push(2**40), push(2**40), MULTIPLY))
    assert result.stack == [2**80]


@pytest.mark.parametrize("op", [DIVIDE, MODULO])
def test_division_by_zero_is_arithmetic_fault(op):
    with pytest.raises(ArithmeticFault):
        run(program_of(push(1), push(0), op))


def test_store_and_retrieve():
    result, _ = run(program_of(push(5), push(99), STORE, push(5), RETRIEVE))
    assert result.stack == [99]
    assert result.heap == {5: 99}


def test_retrieve_unbound_address():
    with pytest.raises(UnboundAddress) as excinfo:
        run(program_of(push(10), RETRIEVE))
    assert excinfo.value.instruction == RETRIEVE


def test_duplicate_on_empty_stack():
    with pytest.raises(StackUnderflow):
        run(program_of(DUPLICATE))


@pytest.mark.parametrize("op", [DUPLICATE, DISCARD, RETRIEVE, PRINT_CHAR, PRINT_NUMBER, READ_CHAR])
def test_unary_ops_underflow_on_empty_stack(op):
    with pytest.raises(StackUnderflow):
        run(program_of(op))


@pytest.mark.parametrize("op", [SWAP, ADD, SUBTRACT, MULTIPLY, DIVIDE, MODULO, STORE])
def test_binary_ops_underflow_with_one_item(op):
    with pytest.raises(StackUnderflow):
        run(program_of(push(1), op))


@pytest.mark.parametrize(
    "setup, instr",
    [
        ([], call(0)),
        ([], jump(0)),
        ([push(0)], jump_zero(0)),
        ([push(-1)], jump_negative(0)),
    ],
)
def test_undefined_label(setup, instr):
    with pytest.raises(UndefinedLabel):
        run(program_of(*setup, instr))


def test_errors_share_a_base_class():
    with pytest.raises(ExecutionError):
        run(program_of(DISCARD))


def test_return_resumes_caller():
    def block(b):
        b.emit(call(1), push(2), PRINT_NUMBER, HALT)
        with b.label(1) as body:
            body.emit(push(1), PRINT_NUMBER, RETURN, push(99), PRINT_NUMBER)

    _, output = run(build_program(block))
    assert output == "12"


def test_falling_off_a_body_returns():
    def block(b):
        b.emit(call(1), call(1), push(0), PRINT_NUMBER)
        with b.label(1) as body:
            body.emit(push(7), PRINT_NUMBER)
        with b.label(2) as body:
            body.emit(push(8), PRINT_NUMBER)

    result, output = run(build_program(block))
    assert output == "770"
    assert result.status is ExecutionStatus.FINISHED


def test_untaken_branches_continue():
    def block(b):
        b.emit(push(1), jump_zero(9), push(0), jump_negative(9), push(3), PRINT_NUMBER)

    _, output = run(build_program(block))
    assert output == "3"


def test_halt_unwinds_nested_calls():
    def block(b):
        b.emit(call(1), push(1), PRINT_NUMBER)
        with b.label(1) as body:
            body.emit(call(2), push(2), PRINT_NUMBER)
        with b.label(2) as body:
            body.emit(push(3), PRINT_NUMBER, HALT)

    result, output = run(build_program(block))
    assert output == "3"
    assert result.halted
    assert result.max_depth == 2


def test_top_level_return_finishes():
    result, output = run(program_of(push(1), PRINT_NUMBER, RETURN, push(2), PRINT_NUMBER))
    assert output == "1"
    assert result.status is ExecutionStatus.FINISHED


def counting_loop(limit):
    """Count down from limit with a jump back to the loop head each iteration."""

    def block(b):
        b.push(limit)
        b.emit(jump(0))
        with b.label(0) as body:
            body.emit(DUPLICATE, jump_zero(1), push(1), SUBTRACT, jump(0))
        with b.label(1) as body:
            body.emit(HALT)

    return build_program(block)


def test_long_jump_loop_does_not_exhaust_python_stack():
    result, _ = run(counting_loop(20000))
    assert result.halted
    assert result.stack == [0]
    assert result.max_depth == 20002


def test_call_depth_limit():
    program = counting_loop(100)
    config = ExecutionConfig(max_call_depth=50)
    with pytest.raises(CallDepthExceeded):
        evaluate(program, LineReader([]), BufferWriter(), config)


def test_call_depth_limit_can_be_disabled():
    program = counting_loop(100)
    result = evaluate(program, LineReader([]), BufferWriter(), ExecutionConfig(max_call_depth=0))
    assert result.halted


def test_partial_output_survives_failure():
    writer = BufferWriter()
    program = program_of(push(65), PRINT_CHAR, DISCARD)
    with pytest.raises(StackUnderflow):
        evaluate(program, LineReader([]), writer)
    assert writer.getvalue() == "A"


def test_each_run_starts_fresh(hello_world_program):
    writer = BufferWriter()
    executor = Executor(hello_world_program, LineReader([]), writer)
    executor.run()
    result = executor.run()
    assert writer.getvalue() == "Hello world!" * 2
    assert result.stack == []
