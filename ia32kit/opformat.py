"""Rendering of single operands and effective addresses as text."""

from __future__ import annotations

from typing import Optional

from .insn import (
    SEGMENT_MASK,
    DataType,
    EffectiveAddress,
    InsnType,
    Operand,
    OperandFlags,
    OperandType,
)
from .names import Syntax, datatype_string, regtype_string
from .registers import Register

_MASK8 = 0xFF
_MASK16 = 0xFFFF
_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF

_SEGMENT_NAMES: dict[int, str] = {
    int(OperandFlags.ES_SEG): "es",
    int(OperandFlags.CS_SEG): "cs",
    int(OperandFlags.SS_SEG): "ss",
    int(OperandFlags.DS_SEG): "ds",
    int(OperandFlags.FS_SEG): "fs",
    int(OperandFlags.GS_SEG): "gs",
}

_MEMORY_TYPES = (OperandType.OFFSET, OperandType.EXPRESSION)


def _signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    return value - (1 << bits) if value >> (bits - 1) else value


def _syntax(syntax: Optional[int]) -> Syntax:
    try:
        return Syntax(int(syntax)) if syntax is not None else Syntax.NATIVE
    except ValueError:
        return Syntax.NATIVE


def operand_data_string(op: Operand) -> str:
    """Text of an immediate operand's value: decimal if signed, else hex."""
    value = op.value
    if op.flags & OperandFlags.SIGNED:
        if op.datatype == DataType.BYTE:
            return str(_signed(value, 8))
        if op.datatype == DataType.WORD:
            return str(_signed(value, 16))
        if op.datatype == DataType.QWORD:
            return str(_signed(value, 64))
        return str(_signed(value, 32))
    if op.datatype == DataType.BYTE:
        return f"0x{value & _MASK8:02X}"
    if op.datatype == DataType.WORD:
        return f"0x{value & _MASK16:04X}"
    if op.datatype == DataType.QWORD:
        return f"0x{value & _MASK64:08X}"
    return f"0x{value & _MASK32:08X}"


def format_segment(op: Operand, syntax: Syntax = Syntax.NATIVE) -> str:
    """Segment override text for a memory operand, or an empty string."""
    if op.type not in _MEMORY_TYPES:
        return ""
    name = _SEGMENT_NAMES.get(int(op.flags) & SEGMENT_MASK)
    if name is None:
        return ""
    syntax = _syntax(syntax)
    if syntax == Syntax.XML:
        return f'\t\t\t<segment value="{name}"/>\n'
    if syntax == Syntax.ATT:
        return f"%{name}:"
    return f"{name}:"


def _displacement(ea: EffectiveAddress) -> str:
    if not (ea.disp_size and ea.disp):
        return ""
    if ea.disp_sign:
        return f"-0x{(-ea.disp) & _MASK32:X}"
    return f"0x{ea.disp & _MASK32:X}"


def _xml_register(tag: str, reg: Register) -> str:
    return (
        f"\t\t\t<{tag}>\n"
        f'\t\t\t\t<register name="{reg.name}" '
        f'type="{regtype_string(reg.type)}" size={reg.size}/>\n'
        f"\t\t\t</{tag}>\n"
    )


def _expression_att(ea: EffectiveAddress) -> str:
    base, index = ea.base.name, ea.index.name
    if not (base or index or ea.scale):
        return f"0x{ea.disp & _MASK32:X}"
    parts = [_displacement(ea), "("]
    if base:
        parts.append(f"%{base}")
    if index:
        parts.append(f",%{index}")
        if ea.scale > 1:
            parts.append(f",{ea.scale}")
    if not base and not index:
        parts.append(f",{ea.scale}")
    parts.append(")")
    return "".join(parts)


def _expression_xml(ea: EffectiveAddress) -> str:
    parts = []
    if ea.base.name:
        parts.append(_xml_register("base", ea.base))
    if ea.index.name:
        parts.append(_xml_register("index", ea.index))
    parts.append(
        "\t\t\t<scale>\n"
        f'\t\t\t\t<immediate value="{ea.scale}"/>\n'
        "\t\t\t</scale>\n"
    )
    if ea.disp_size:
        parts.append("\t\t\t<displacement>\n")
        if ea.disp_size > 1 and not ea.disp_sign:
            parts.append(f'\t\t\t\t<address value="0x{ea.disp & _MASK32:X}"/>\n')
        else:
            parts.append(f"\t\t\t\t<immediate value={_signed(ea.disp, 32)}/>\n")
        parts.append("\t\t\t</displacement>\n")
    return "".join(parts)


def _expression_raw(ea: EffectiveAddress) -> str:
    return f"{_displacement(ea)}({ea.base.name},{ea.index.name},{ea.scale})"


def _expression_native(ea: EffectiveAddress) -> str:
    base, index = ea.base.name, ea.index.name
    positive_disp = bool(ea.disp_size) and not ea.disp_sign
    parts = ["["]
    if base:
        parts.append(base)
        if index or positive_disp:
            parts.append("+")
    if index:
        parts.append(index)
        if ea.scale > 1:
            parts.append(f"*{ea.scale}")
        if positive_disp:
            parts.append("+")
    if ea.disp_size or (not index and not base):
        parts.append(_displacement(ea))
    parts.append("]")
    return "".join(parts)


def format_expression(ea: EffectiveAddress, syntax: Syntax = Syntax.NATIVE) -> str:
    """Text of an effective address in the given syntax."""
    syntax = _syntax(syntax)
    if syntax == Syntax.ATT:
        return _expression_att(ea)
    if syntax == Syntax.XML:
        return _expression_xml(ea)
    if syntax == Syntax.RAW:
        return _expression_raw(ea)
    return _expression_native(ea)


def _target(op: Operand, displacement: int) -> int:
    insn = op.insn
    addr, size = (insn.addr, insn.size) if insn is not None else (0, 0)
    return (displacement + addr + size) & _MASK32


def _relative_far(op: Operand) -> int:
    if op.datatype == DataType.WORD:
        return _signed(op.value, 16)
    return _signed(op.value, 32)


def _absolute_offset(op: Operand, prefix: str = "0x") -> str:
    if op.datatype == DataType.DESCR16:
        return f"{prefix}{op.value & _MASK16:04X}"
    return f"{prefix}{op.value & _MASK32:08X}"


def _is_jump_or_call(op: Operand) -> bool:
    return op.insn is not None and op.insn.type in (InsnType.JMP, InsnType.CALL)


def _operand_att(op: Operand) -> str:
    kind = op.type
    if kind == OperandType.REGISTER:
        return f"%{op.reg.name}"
    if kind == OperandType.IMMEDIATE:
        return f"${operand_data_string(op)}"
    if kind == OperandType.RELATIVE_NEAR:
        return f"0x{_target(op, _signed(op.value, 8)):08X}"
    if kind == OperandType.RELATIVE_FAR:
        return f"0x{_target(op, _relative_far(op)):08X}"
    if kind == OperandType.ABSOLUTE:
        return f"$0x{op.segment & _MASK16:04X}, " + _absolute_offset(op, "$0x")
    if kind == OperandType.OFFSET:
        star = "*" if _is_jump_or_call(op) else ""
        return f"{star}{format_segment(op, Syntax.ATT)}0x{op.value & _MASK32:08X}"
    if kind == OperandType.EXPRESSION:
        star = "*" if _is_jump_or_call(op) else ""
        return (star + format_segment(op, Syntax.ATT)
                + format_expression(op.expression, Syntax.ATT))
    return ""


def _operand_native(op: Operand) -> str:
    kind = op.type
    if kind == OperandType.REGISTER:
        return op.reg.name
    if kind == OperandType.IMMEDIATE:
        return operand_data_string(op)
    if kind == OperandType.RELATIVE_NEAR:
        return f"0x{_target(op, _signed(op.value, 8)):08X}"
    if kind == OperandType.RELATIVE_FAR:
        return f"0x{_target(op, _relative_far(op)):08X}"
    if kind == OperandType.ABSOLUTE:
        return f"$0x{op.segment & _MASK16:04X}:" + _absolute_offset(op)
    if kind == OperandType.OFFSET:
        return f"{format_segment(op, Syntax.NATIVE)}[0x{op.value & _MASK32:08X}]"
    if kind == OperandType.EXPRESSION:
        return (format_segment(op, Syntax.NATIVE)
                + format_expression(op.expression, Syntax.NATIVE))
    return ""


def _operand_xml(op: Operand) -> str:
    kind = op.type
    if kind == OperandType.REGISTER:
        return (f'\t\t<register name="{op.reg.name}" '
                f'type="{regtype_string(op.reg.type)}" size={op.reg.size}/>\n')
    if kind == OperandType.IMMEDIATE:
        return (f'\t\t<immediate type="{datatype_string(op)}" '
                f'value="{operand_data_string(op)}"/>\n')
    if kind in (OperandType.RELATIVE_NEAR, OperandType.RELATIVE_FAR):
        disp = _signed(op.value, 8) if kind == OperandType.RELATIVE_NEAR else _relative_far(op)
        return f'\t\t<relative_offset value="0x{_target(op, disp):08X}"/>\n'
    if kind == OperandType.ABSOLUTE:
        return (f'\t\t<absolute_address segment="0x{op.segment & _MASK16:04X}"'
                f'offset="{_absolute_offset(op)}">'
                "\t\t</absolute_address>\n")
    if kind == OperandType.EXPRESSION:
        return ("\t\t<address_expression>\n"
                + format_segment(op, Syntax.XML)
                + format_expression(op.expression, Syntax.XML)
                + "\t\t</address_expression>\n")
    if kind == OperandType.OFFSET:
        return ("\t\t<segment_offset>\n"
                + format_segment(op, Syntax.XML)
                + f'\t\t\t<address value="0x{op.value & _MASK32:08X}"/>\n'
                + "\t\t</segment_offset>\n")
    return ""


def _operand_raw(op: Operand) -> str:
    kind = op.type
    datatype = datatype_string(op)
    if kind == OperandType.REGISTER:
        return (f"reg|{datatype}|{op.reg.name}:"
                f"{regtype_string(op.reg.type)}:{op.reg.size}|")
    if kind == OperandType.IMMEDIATE:
        return f"immediate|{datatype}|{operand_data_string(op)}|"
    if kind == OperandType.RELATIVE_NEAR:
        # The raw form shows the displacement, not the branch target.
        return f"relative|{datatype}|{_signed(op.value, 8)}|"
    if kind == OperandType.RELATIVE_FAR:
        return f"relative|{datatype}|{_relative_far(op)}|"
    if kind == OperandType.ABSOLUTE:
        return (f"absolute_address|{datatype}|$0x{op.segment & _MASK16:04X}:"
                f"{_absolute_offset(op)}|")
    if kind == OperandType.EXPRESSION:
        return (f"address_expression|{datatype}|"
                + format_segment(op, Syntax.NATIVE)
                + format_expression(op.expression, Syntax.RAW) + "|")
    if kind == OperandType.OFFSET:
        return (f"segment_offset|{datatype}|" + format_segment(op, Syntax.XML)
                + f"{op.value & _MASK32:08X}|")
    return ""


def format_operand(op: Operand, syntax: Syntax = Syntax.NATIVE) -> str:
    """Text of one operand in the given syntax; empty for unused operands."""
    syntax = _syntax(syntax)
    if syntax == Syntax.ATT:
        return _operand_att(op)
    if syntax == Syntax.XML:
        return _operand_xml(op)
    if syntax == Syntax.RAW:
        return _operand_raw(op)
    return _operand_native(op)