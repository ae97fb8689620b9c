"""Exception hierarchy for the btern machine.

Build-time errors (OutOfRange, FieldOverflow, UnknownMnemonic) are raised
to the caller. MachineFault subclasses are raised by the execution
primitives and caught by the FDE loop, which halts the CPU and records
the fault on its state instead of propagating it.
"""

from typing import Optional


class TernaryError(Exception):
    """Base exception for all btern errors."""

    pass


class OutOfRange(TernaryError, ValueError):
    """Value cannot be represented in a fixed-width ternary container."""

    def __init__(self, message: str, value: Optional[int] = None, width: Optional[int] = None):
        """Initialize with the offending value and container width.

        Args:
            message: Error description
            value: Integer that did not fit
            width: Width of the container in trits
        """
        super().__init__(message)
        self.value = value
        self.width = width


class FieldOverflow(OutOfRange):
    """Instruction field value outside the range of its trit-width."""

    def __init__(
        self,
        message: str,
        field: str,
        value: Optional[int] = None,
        width: Optional[int] = None,
        index: Optional[int] = None,
    ):
        """Initialize with field context.

        Args:
            message: Error description
            field: Field name ("opcode", "rd", "rs1", "rs2", "imm")
            value: Offending field value
            width: Field width in trits
            index: Position of the instruction in a program, if known
        """
        super().__init__(message, value=value, width=width)
        self.field = field
        self.index = index


class UnknownMnemonic(TernaryError, ValueError):
    """Resolved instruction names an opcode the ISA does not define."""

    def __init__(self, mnemonic: str, index: Optional[int] = None):
        where = f" at index {index}" if index is not None else ""
        super().__init__(f"Unknown mnemonic{where}: {mnemonic!r}")
        self.mnemonic = mnemonic
        self.index = index


class MachineFault(TernaryError):
    """Unrecoverable fault raised while the CPU executes a program.

    Attributes:
        pc: Program counter of the faulting instruction
        raw: Raw instruction Word, if it was fetched
    """

    def __init__(self, message: str, pc: Optional[int] = None, raw=None):
        super().__init__(message)
        self.pc = pc
        self.raw = raw

    @property
    def kind(self) -> str:
        return type(self).__name__


class DecodeError(MachineFault):
    """Word does not decode to a defined instruction."""

    pass


class MemoryFault(MachineFault):
    """Fetch, load or store outside allocated memory."""

    def __init__(self, message: str, address: Optional[int] = None, pc: Optional[int] = None, raw=None):
        super().__init__(message, pc=pc, raw=raw)
        self.address = address


class StackFault(MachineFault):
    """RET on an empty call stack, or CALL on a full one."""

    pass
