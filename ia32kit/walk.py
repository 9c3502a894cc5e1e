"""Driving a decoder over a buffer: single, linear and flow-following."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Optional

from .insn import Instruction, InsnType, Operand, OperandType
from .settings import ReportCode, Settings

Decoder = Callable[[bytes, int, Instruction], int]
"""Decodes one instruction: ``(window, available, insn) -> size``.

``window`` is zero-padded to the maximum instruction size, ``available``
is the number of real bytes left in the buffer; the decoder fills
``insn`` and returns the number of bytes consumed, or 0 if invalid.
"""

Resolver = Callable[[Optional[Operand], Instruction], Optional[int]]
"""Returns the address a branch goes to, or None if unknown."""

_FOLLOWED = frozenset({InsnType.JMP, InsnType.JCC, InsnType.CALL, InsnType.CALLCC})
_TERMINAL = frozenset({InsnType.JMP, InsnType.RETURN})


def disassemble(decoder: Decoder, buf: bytes, rva: int, offset: int,
                settings: Optional[Settings] = None) -> Optional[Instruction]:
    """Decode the instruction at ``offset``; return None if that fails.

    Failures are passed to the settings' reporter.
    """
    if settings is None:
        settings = Settings()
    if not buf:
        return None
    insn = Instruction(addr=(rva + offset) & 0xFFFFFFFF, offset=offset)
    if offset < 0 or offset >= len(buf):
        settings.report(ReportCode.DISASM_BOUNDS, rva + offset)
        return None

    available = len(buf) - offset
    window = bytes(buf[offset:offset + settings.max_insn]).ljust(settings.max_insn, b"\x00")
    size = decoder(window, available, insn)
    if not size:
        settings.report(ReportCode.INVALID_INSN, rva + offset)
        return None
    if size > available:
        settings.report(ReportCode.INSN_BOUNDS, rva + offset)
        return None

    insn.size = size
    insn.raw = window[:size]
    return insn


def disassemble_range(decoder: Decoder, buf: bytes, rva: int, offset: int,
                      length: int, settings: Optional[Settings] = None
                      ) -> Iterator[Instruction]:
    """Yield instructions decoded linearly over ``length`` bytes from
    ``offset``, skipping one byte after each failure."""
    window = buf[:offset + length]
    done = 0
    while done < length:
        insn = disassemble(decoder, window, rva, offset + done, settings)
        if insn is None:
            done += 1
        else:
            yield insn
            done += insn.size


def _resolve(op: Optional[Operand], insn: Instruction) -> Optional[int]:
    if op is None:
        return None
    if op.type.is_address:
        return op.value
    if op.type in (OperandType.RELATIVE_NEAR, OperandType.RELATIVE_FAR):
        return (insn.addr + insn.size + op.value) & 0xFFFFFFFF
    return None


def disassemble_forward(decoder: Decoder, buf: bytes, rva: int, offset: int,
                        resolver: Optional[Resolver] = None,
                        settings: Optional[Settings] = None
                        ) -> Iterator[Instruction]:
    """Yield instructions following control flow from ``offset``.

    Branch and call targets inside the buffer are walked first; walking
    stops after an unconditional jump or a return.
    """
    if settings is None:
        settings = Settings()
    done = 0
    while done < len(buf):
        insn = disassemble(decoder, buf, rva, offset + done, settings)
        if insn is None:
            done += 1
            continue
        yield insn
        done += insn.size

        if insn.type in _FOLLOWED:
            op = insn.first()
            target = resolver(op, insn) if resolver is not None else _resolve(op, insn)
            if target is not None:
                next_offset = target - rva
                if 0 <= next_offset < len(buf):
                    yield from disassemble_forward(decoder, buf, rva, next_offset,
                                                   resolver, settings)
                else:
                    settings.report(ReportCode.DISASM_BOUNDS, target)

        if insn.type in _TERMINAL:
            break