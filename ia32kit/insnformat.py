"""Rendering of whole instructions, mnemonics and column headers as text."""

from __future__ import annotations

from typing import Optional

from .insn import (
    InsnGroup,
    InsnNote,
    InsnType,
    Instruction,
    Operand,
    OperandFilter,
    OperandFlags,
    OperandType,
)
from .names import (
    Syntax,
    cpu_string,
    eflags_string,
    group_string,
    isa_string,
    note_string,
    prefix_string,
    type_string,
)
from .opformat import format_operand

_MASK32 = 0xFFFFFFFF

_IMM_JUMP_TYPES = (OperandType.ABSOLUTE, OperandType.IMMEDIATE, OperandType.OFFSET)
_MEMORY_TYPES = (OperandType.ABSOLUTE, OperandType.EXPRESSION, OperandType.OFFSET)

_SUFFIXED_GROUPS = (
    InsnGroup.ARITHMETIC,
    InsnGroup.LOGIC,
    InsnGroup.MOVE,
    InsnGroup.STACK,
    InsnGroup.STRING,
    InsnGroup.COMPARISON,
)

_SIZE_SUFFIXES = {1: "b", 2: "w", 4: "l", 8: "q"}

_HEADERS: dict[Syntax, str] = {
    Syntax.ATT: "MNEMONIC\tSRC, DEST, IMM",
    Syntax.INTEL: "MNEMONIC\tDEST, SRC, IMM",
    Syntax.NATIVE: "ADDRESS\tBYTES\tMNEMONIC\tDEST\tSRC\tIMM",
    Syntax.RAW: (
        "ADDRESS|OFFSET|SIZE|BYTES|"
        "PREFIX|PREFIX_STRING|GROUP|TYPE|NOTES|"
        "MNEMONIC|CPU|ISA|FLAGS_SET|FLAGS_TESTED|"
        "STACK_MOD|STACK_MOD_VAL"
        "[|OP_TYPE|OP_DATATYPE|OP_ACCESS|OP_FLAGS|OP]*"
    ),
    Syntax.XML: (
        "<x86_insn>"
        "<address rva= offset= size= bytes=/>"
        "<prefix type= string=/>"
        "<mnemonic group= type= string= "
        "cpu= isa= note= />"
        "<flags type=set>"
        "<flag name=>"
        "</flags>"
        "<stack_mod val= >"
        "<flags type=tested>"
        "<flag name=>"
        "</flags>"
        "<operand name=>"
        "<register name= type= size=/>"
        "<immediate type= value=/>"
        "<relative_offset value=/>"
        "<absolute_address value=>"
        "<segment value=/>"
        "</absolute_address>"
        "<address_expression>"
        "<segment value=/>"
        "<base>"
        "<register name= type= size=/>"
        "</base>"
        "<index>"
        "<register name= type= size=/>"
        "</index>"
        "<scale>"
        "<immediate value=/>"
        "</scale>"
        "<displacement>"
        "<immediate value=/>"
        "<address value=/>"
        "</displacement>"
        "</address_expression>"
        "<segment_offset>"
        "<address value=/>"
        "</segment_offset>"
        "</operand>"
        "</x86_insn>"
    ),
    Syntax.UNKNOWN: "",
}


def _syntax(syntax: Optional[int]) -> Syntax:
    try:
        return Syntax(int(syntax)) if syntax is not None else Syntax.NATIVE
    except ValueError:
        return Syntax.NATIVE


def _implied(op: Optional[Operand]) -> bool:
    return op is not None and bool(op.flags & OperandFlags.IMPLIED)


def _bytes_text(insn: Instruction) -> str:
    return "".join(f"{b:02X} " for b in insn.raw[:insn.size])


def _att_mnemonic(insn: Instruction) -> str:
    first = insn.first()
    if insn.type in (InsnType.JMP, InsnType.CALL):
        near_imm = (first is not None and first.type in _IMM_JUMP_TYPES
                    and first.datatype == first.datatype.BYTE)
        return ("" if near_imm else "l") + insn.mnemonic

    size = 0
    if not insn.note & InsnNote.NOSUFFIX and (
            insn.group in _SUFFIXED_GROUPS
            or insn.type in (InsnType.IN, InsnType.OUT)):
        explicit = insn.operand_count(OperandFilter.EXPLICIT)
        second = insn.second()
        if explicit > 0 and first is not None and first.type in _MEMORY_TYPES:
            size = first.byte_size()
        elif explicit > 1 and second is not None and second.type in _MEMORY_TYPES:
            size = second.byte_size()
    return insn.mnemonic + _SIZE_SUFFIXES.get(size, "")


def format_mnemonic(insn: Instruction, syntax: Syntax = Syntax.NATIVE) -> str:
    """Prefix string and mnemonic, with AT&T size suffixes when asked for."""
    syntax = _syntax(syntax)
    if syntax == Syntax.ATT:
        return insn.prefix_string + _att_mnemonic(insn)
    return insn.prefix_string + insn.mnemonic


def _intel(insn: Instruction) -> str:
    parts = [insn.prefix_string, insn.mnemonic, "\t"]
    dst = insn.first()
    if dst is not None and not _implied(dst):
        parts.append(format_operand(dst, Syntax.INTEL))
    src = insn.second()
    if src is not None:
        if not _implied(dst):
            parts.append(", ")
        parts.append(format_operand(src, Syntax.INTEL))
    imm = insn.third()
    if imm is not None:
        parts.append(", ")
        parts.append(format_operand(imm, Syntax.INTEL))
    return "".join(parts)


def _att(insn: Instruction) -> str:
    parts = [insn.prefix_string, _att_mnemonic(insn), "\t"]
    imm = insn.third()
    if imm is not None:
        parts.append(format_operand(imm, Syntax.ATT))
        parts.append(", ")
    if insn.note & InsnNote.NONSWAP:
        src, dst = insn.first(), insn.second()
    else:
        src, dst = insn.second(), insn.first()
    if src is not None:
        parts.append(format_operand(src, Syntax.ATT))
        if dst is not None and not _implied(dst):
            parts.append(", ")
    if dst is not None and not _implied(dst):
        parts.append(format_operand(dst, Syntax.ATT))
    return "".join(parts)


def _raw(insn: Instruction) -> str:
    parts = [
        f"0x{insn.addr & _MASK32:08X}|",
        f"0x{insn.offset & _MASK32:08X}|",
        f"{insn.size}|",
        _bytes_text(insn),
        "|",
        prefix_string(insn.prefix),
        f"|{insn.prefix_string}|",
        f"{group_string(insn.group)}|",
        f"{type_string(insn.type)}|",
        f"{insn.mnemonic}|",
        f"{cpu_string(insn.cpu)}|",
        f"{isa_string(insn.isa)}|",
        f"{note_string(insn.note)}|",
        eflags_string(insn.flags_set),
        "|",
        eflags_string(insn.flags_tested),
        "|",
        f"{int(insn.stack_mod)}|",
        f"{insn.stack_mod_val}|",
    ]
    parts.extend(format_operand(op, Syntax.RAW)
                 for op in insn.operands_matching(OperandFilter.ANY))
    return "".join(parts)


def _xml(insn: Instruction) -> str:
    parts = [
        "<x86_insn>\n",
        f'\t<address rva="0x{insn.addr & _MASK32:08X}" ',
        f'offset="0x{insn.offset & _MASK32:08X}" ',
        f'size={insn.size} bytes="',
        _bytes_text(insn),
        '"/>\n',
        '\t<prefix type="',
        prefix_string(insn.prefix),
        f'" string="{insn.prefix_string}"/>\n',
        f'\t<mnemonic group="{group_string(insn.group)}" ',
        f'type="{type_string(insn.type)}" ',
        f'string="{insn.mnemonic}"/>\n',
        "\t<flags type=set>\n",
        '\t\t<flag name="',
        eflags_string(insn.flags_set),
        '"/>\n\t</flags>\n',
        "\t<flags type=tested>\n",
        '\t\t<flag name="',
        eflags_string(insn.flags_tested),
        '"/>\n\t</flags>\n',
    ]
    for name, op in (("dest", insn.first()), ("src", insn.second()),
                     ("imm", insn.third())):
        if op is not None:
            parts.append(f"\t<operand name={name}>\n")
            parts.append(format_operand(op, Syntax.XML))
            parts.append("\t</operand>\n")
    parts.append("</x86_insn>\n")
    return "".join(parts)


def _native(insn: Instruction) -> str:
    parts = [
        f"{insn.addr & _MASK32:08X}\t",
        _bytes_text(insn),
        "\t",
        insn.prefix_string,
        insn.mnemonic,
        "\t",
    ]
    first, second, third = insn.first(), insn.second(), insn.third()
    if first is not None:
        parts.append(format_operand(first, Syntax.NATIVE) + "\t")
    if second is not None:
        parts.append(format_operand(second, Syntax.NATIVE) + "\t")
    if third is not None:
        parts.append(format_operand(third, Syntax.NATIVE))
    return "".join(parts)


def format_instruction(insn: Instruction, syntax: Syntax = Syntax.NATIVE) -> str:
    """Text of a whole instruction in the given syntax."""
    syntax = _syntax(syntax)
    if syntax == Syntax.INTEL:
        return _intel(insn)
    if syntax == Syntax.ATT:
        return _att(insn)
    if syntax == Syntax.RAW:
        return _raw(insn)
    if syntax == Syntax.XML:
        return _xml(insn)
    return _native(insn)


def format_header(syntax: Syntax = Syntax.NATIVE) -> str:
    """Column header describing the layout of formatted instructions."""
    return _HEADERS[_syntax(syntax)]