import pytest

from spacevm.builder import ProgramBuilder
from spacevm.core.instruction import (
    DISCARD,
    DUPLICATE,
    HALT,
    PRINT_CHAR,
    call,
    jump,
    jump_zero,
)

# Pushes "Hello world!" in reverse over a 0 sentinel, then loops printing
# characters until the sentinel is reached.
HELLO_WORLD_SOURCE = (
    "    \n"  # push 0
    "   \t    \t\n"  # push 33
    "   \t\t  \t  \n"  # push 100
    "   \t\t \t\t  \n"  # push 108
    "   \t\t\t  \t \n"  # push 114
    "   \t\t \t\t\t\t\n"  # push 111
    "   \t\t\t \t\t\t\n"  # push 119
    "   \t     \n"  # push 32
    "   \t\t \t\t\t\t\n"  # push 111
    "   \t\t \t\t  \n"  # push 108
    "   \t\t \t\t  \n"  # push 108
    "   \t\t  \t \t\n"  # push 101
    "   \t  \t   \n"  # push 72
    "\n \t  \n"  # call label 0
    "\n    \n"  # define label 0
    " \n "  # duplicate
    "\n\t  \t\n"  # if zero jump to label 1
    "\t\n  "  # print char
    "\n \t  \n"  # call label 0 again
    "\n   \t\n"  # define label 1
    " \n\n"  # discard
    "\n\n\n"  # end program
)


@pytest.fixture
def hello_world_source():
    return HELLO_WORLD_SOURCE


@pytest.fixture
def hello_world_program():
    builder = ProgramBuilder()
    builder.push(0, 33, 100, 108, 114, 111, 119, 32, 111, 108, 108, 101, 72)
    builder.emit(call(0))
    with builder.label(0) as body:
        body.emit(DUPLICATE, jump_zero(1), PRINT_CHAR, jump(0))
    with builder.label(1) as body:
        body.emit(DISCARD, HALT)
    return builder.build()
