import pytest

from ia32kit.insn import (
    DataType,
    InsnGroup,
    InsnNote,
    InsnType,
    Instruction,
    OperandFlags,
    OperandType,
)
from ia32kit.insnformat import format_header, format_instruction, format_mnemonic
from ia32kit.names import Syntax
from ia32kit.opformat import format_operand
from ia32kit.registers import register_from_id


def _reg_op(insn, reg_id, flags=OperandFlags.NONE):
    op = insn.add_operand()
    op.type = OperandType.REGISTER
    op.datatype = DataType.DWORD
    op.reg = register_from_id(reg_id)
    op.flags = flags
    return op


def _mov_eax_ecx():
    insn = Instruction(addr=0x1000, offset=0x10, group=InsnGroup.MOVE,
                       type=InsnType.MOV, mnemonic="mov",
                       raw=b"\x89\xc8", size=2)
    _reg_op(insn, 1)
    _reg_op(insn, 2)
    return insn


def _mem_op(insn, datatype=DataType.DWORD):
    op = insn.add_operand()
    op.type = OperandType.EXPRESSION
    op.datatype = datatype
    op.expression.base = register_from_id(1)
    return op


def test_headers_fixed_by_format():
    assert format_header(Syntax.INTEL) == "MNEMONIC\tDEST, SRC, IMM"
    assert format_header(Syntax.ATT) == "MNEMONIC\tSRC, DEST, IMM"
    assert format_header(Syntax.NATIVE) == "ADDRESS\tBYTES\tMNEMONIC\tDEST\tSRC\tIMM"
    assert format_header(Syntax.UNKNOWN) == ""
    assert format_header(Syntax.RAW).startswith("ADDRESS|OFFSET|SIZE|BYTES|")
    xml = format_header(Syntax.XML)
    assert xml.startswith("<x86_insn>") and xml.endswith("</x86_insn>")


def test_intel_order_dest_then_src():
    insn = _mov_eax_ecx()
    text = format_instruction(insn, Syntax.INTEL)
    assert text == "mov\teax, ecx"
    expected = ("mov\t" + format_operand(insn.first(), Syntax.INTEL) + ", "
                + format_operand(insn.second(), Syntax.INTEL))
    assert text == expected


def test_att_swaps_operands():
    insn = _mov_eax_ecx()
    text = format_instruction(insn, Syntax.ATT)
    assert text == "mov\t%ecx, %eax"


def test_att_nonswap_keeps_order():
    insn = _mov_eax_ecx()
    insn.note = InsnNote.NONSWAP
    text = format_instruction(insn, Syntax.ATT)
    assert text.endswith("%eax, %ecx")


def test_att_third_operand_comes_first():
    insn = _mov_eax_ecx()
    imm = insn.add_operand()
    imm.type = OperandType.IMMEDIATE
    imm.datatype = DataType.BYTE
    imm.value = 5
    text = format_instruction(insn, Syntax.ATT)
    assert text.split("\t", 1)[1].startswith(format_operand(imm, Syntax.ATT) + ", ")


def test_att_memory_suffix():
    insn = Instruction(group=InsnGroup.MOVE, type=InsnType.MOV, mnemonic="mov")
    _mem_op(insn, DataType.DWORD)
    _reg_op(insn, 2)
    assert format_mnemonic(insn, Syntax.ATT) == "movl"
    insn.operands[0].datatype = DataType.BYTE
    assert format_mnemonic(insn, Syntax.ATT) == "movb"


def test_att_suffix_from_second_operand():
    insn = Instruction(group=InsnGroup.ARITHMETIC, type=InsnType.ADD, mnemonic="add")
    _reg_op(insn, 1)
    _mem_op(insn, DataType.WORD)
    assert format_mnemonic(insn, Syntax.ATT) == "addw"


def test_att_nosuffix_note_suppresses_suffix():
    insn = Instruction(group=InsnGroup.MOVE, type=InsnType.MOV, mnemonic="mov",
                       note=InsnNote.NOSUFFIX)
    _mem_op(insn)
    assert format_mnemonic(insn, Syntax.ATT) == insn.mnemonic


def test_att_jump_prefix():
    insn = Instruction(group=InsnGroup.CONTROLFLOW, type=InsnType.JMP, mnemonic="jmp")
    op = insn.add_operand()
    op.type = OperandType.IMMEDIATE
    op.datatype = DataType.BYTE
    assert format_mnemonic(insn, Syntax.ATT) == "jmp"
    op.type = OperandType.RELATIVE_FAR
    op.datatype = DataType.DWORD
    assert format_mnemonic(insn, Syntax.ATT) == "l" + insn.mnemonic


def test_mnemonic_includes_prefix_string():
    insn = _mov_eax_ecx()
    insn.prefix_string = "lock "
    assert format_mnemonic(insn, Syntax.INTEL) == "lock mov"
    assert format_instruction(insn, Syntax.INTEL).startswith("lock mov\t")


def test_intel_implied_destination_is_hidden():
    insn = _mov_eax_ecx()
    insn.operands[0].flags = OperandFlags.IMPLIED
    text = format_instruction(insn, Syntax.INTEL)
    assert text == "mov\t" + format_operand(insn.second(), Syntax.INTEL)


def test_native_columns():
    insn = _mov_eax_ecx()
    text = format_instruction(insn, Syntax.NATIVE)
    columns = text.split("\t")
    assert columns[0] == f"{insn.addr:08X}"
    assert columns[1] == "89 C8 "
    assert columns[2] == "mov"
    assert columns[3:5] == ["eax", "ecx"]


def test_unknown_syntax_value_falls_back_to_native():
    insn = _mov_eax_ecx()
    assert format_instruction(insn, 99) == format_instruction(insn, Syntax.NATIVE)
    assert format_header(99) == format_header(Syntax.NATIVE)


def test_raw_fields():
    insn = _mov_eax_ecx()
    text = format_instruction(insn, Syntax.RAW)
    fields = text.split("|")
    assert fields[0] == f"0x{insn.addr:08X}"
    assert fields[1] == f"0x{insn.offset:08X}"
    assert fields[2] == str(insn.size)
    assert fields[3] == "89 C8 "
    assert fields[6] == "move"
    assert fields[7] == "mov"
    assert fields[8] == insn.mnemonic
    assert text.count("reg|") == len(insn.operands)
    assert text.endswith(format_operand(insn.second(), Syntax.RAW))


def test_xml_structure():
    insn = _mov_eax_ecx()
    text = format_instruction(insn, Syntax.XML)
    assert text.startswith("<x86_insn>\n")
    assert text.endswith("</x86_insn>\n")
    assert "\t<operand name=dest>\n" + format_operand(insn.first(), Syntax.XML) in text
    assert "\t<operand name=src>\n" + format_operand(insn.second(), Syntax.XML) in text
    assert "<operand name=imm>" not in text
    assert 'bytes="89 C8 "' in text


@pytest.mark.parametrize("syntax", [Syntax.INTEL, Syntax.ATT, Syntax.NATIVE])
def test_mnemonic_leads_text(syntax):
    insn = _mov_eax_ecx()
    mnemonic = format_mnemonic(insn, syntax)
    text = format_instruction(insn, syntax)
    if syntax == Syntax.NATIVE:
        assert text.split("\t")[2] == mnemonic
    else:
        assert text.split("\t")[0] == mnemonic