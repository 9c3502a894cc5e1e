import pytest

from ia32kit.immediates import read_signed
from ia32kit.insn import Access, DataType, InsnType, OperandFlags, OperandType
from ia32kit.settings import ReportCode, Settings
from ia32kit.walk import disassemble, disassemble_forward, disassemble_range

RVA = 0x1000


def _relative(insn, data, size):
    op = insn.add_operand()
    op.type = OperandType.RELATIVE_NEAR if size == 1 else OperandType.RELATIVE_FAR
    op.datatype = DataType.BYTE if size == 1 else DataType.DWORD
    op.access = Access.EXECUTE
    op.flags = OperandFlags.SIGNED
    op.value = read_signed(data[1:], size)


def decoder(data, available, insn):
    opcode = data[0]
    if opcode == 0x90:
        insn.type, insn.mnemonic, insn.size = InsnType.NOP, "nop", 1
        return 1
    if opcode == 0xC3:
        insn.type, insn.mnemonic, insn.size = InsnType.RETURN, "ret", 1
        return 1
    if opcode == 0xEB:
        insn.type, insn.mnemonic, insn.size = InsnType.JMP, "jmp", 2
        _relative(insn, data, 1)
        return 2
    if opcode == 0xE8:
        insn.type, insn.mnemonic, insn.size = InsnType.CALL, "call", 5
        _relative(insn, data, 4)
        return 5
    return 0


@pytest.fixture
def recorded():
    reports = []
    settings = Settings(reporter=lambda code, data: reports.append((code, data)))
    return settings, reports


def test_disassemble_single(recorded):
    settings, reports = recorded
    buf = b"\x00\x90"
    insn = disassemble(decoder, buf, RVA, 1, settings)
    assert insn.addr == RVA + 1
    assert insn.offset == 1
    assert insn.raw == buf[1:]
    assert insn.size == 1
    assert insn.is_valid()
    assert reports == []


def test_empty_buffer_is_silent(recorded):
    settings, reports = recorded
    assert disassemble(decoder, b"", RVA, 0, settings) is None
    assert reports == []


def test_offset_out_of_bounds(recorded):
    settings, reports = recorded
    assert disassemble(decoder, b"\x90", RVA, 3, settings) is None
    assert reports == [(ReportCode.DISASM_BOUNDS, RVA + 3)]


def test_invalid_instruction_reported(recorded):
    settings, reports = recorded
    assert disassemble(decoder, b"\x00", RVA, 0, settings) is None
    assert reports == [(ReportCode.INVALID_INSN, RVA)]


def test_truncated_instruction_reported(recorded):
    settings, reports = recorded
    assert disassemble(decoder, b"\xe8\x01", RVA, 0, settings) is None
    assert reports == [(ReportCode.INSN_BOUNDS, RVA)]


def test_range_skips_bad_bytes(recorded):
    settings, reports = recorded
    buf = b"\x90\x00\x90\xc3"
    insns = list(disassemble_range(decoder, buf, RVA, 0, len(buf), settings))
    assert [i.mnemonic for i in insns] == ["nop", "nop", "ret"]
    assert sum(i.size for i in insns) + len(reports) == len(buf)
    assert reports == [(ReportCode.INVALID_INSN, RVA + 1)]


def test_range_respects_length():
    buf = b"\x90" * 4
    insns = list(disassemble_range(decoder, buf, RVA, 1, 2))
    assert [i.offset for i in insns] == [1, 2]


def test_forward_follows_jump():
    buf = b"\xeb\x01\x00\x90\xc3"
    insns = list(disassemble_forward(decoder, buf, RVA, 0))
    assert [i.mnemonic for i in insns] == ["jmp", "nop", "ret"]
    assert insns[1].addr == insns[0].addr + insns[0].size + insns[0].rel_offset()


def test_forward_call_returns_to_caller():
    buf = b"\xe8\x01\x00\x00\x00\xc3\x90\xc3"
    insns = list(disassemble_forward(decoder, buf, RVA, 0))
    assert [i.mnemonic for i in insns] == ["call", "nop", "ret", "ret"]
    assert insns[3].offset == insns[0].size


def test_forward_reports_target_outside(recorded):
    settings, reports = recorded
    buf = b"\xeb\x7f"
    insns = list(disassemble_forward(decoder, buf, RVA, 0, settings=settings))
    assert [i.mnemonic for i in insns] == ["jmp"]
    expected = RVA + insns[0].size + insns[0].rel_offset()
    assert reports == [(ReportCode.DISASM_BOUNDS, expected)]


def test_forward_uses_custom_resolver(recorded):
    settings, reports = recorded
    seen = []

    def resolver(op, insn):
        seen.append((op, insn))
        return None

    buf = b"\xeb\x01\x00\x90\xc3"
    insns = list(disassemble_forward(decoder, buf, RVA, 0, resolver, settings))
    assert [i.mnemonic for i in insns] == ["jmp"]
    assert seen[0][1] is insns[0]
    assert seen[0][0] is insns[0].first()
    assert reports == []


def test_forward_resolver_redirects():
    buf = b"\xeb\x00\x90\xc3"

    def resolver(op, insn):
        return RVA + 3

    insns = list(disassemble_forward(decoder, buf, RVA, 0, resolver))
    assert [i.mnemonic for i in insns] == ["jmp", "ret"]