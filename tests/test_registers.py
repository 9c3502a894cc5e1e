import pytest

from ia32kit.registers import (
    NUM_X86_REGS,
    REG_BYTE_OFFSET,
    REG_DWORD_OFFSET,
    REG_EIP_INDEX,
    REG_FLAGS_INDEX,
    REG_FPU_OFFSET,
    REG_IP_INDEX,
    REG_MMX_OFFSET,
    REG_SEG_OFFSET,
    REG_WORD_OFFSET,
    RegisterType,
    register_from_id,
    true_register_id,
)


def test_first_dword_register_is_eax():
    reg = register_from_id(REG_DWORD_OFFSET)
    assert reg.name == "eax"
    assert reg.id == REG_DWORD_OFFSET
    assert reg.type == RegisterType.GEN | RegisterType.RET
    assert reg.alias == 0


def test_ah_aliases_eax_with_shift():
    ah = register_from_id(REG_BYTE_OFFSET + 4)
    assert ah.name == "ah"
    assert ah.alias == REG_DWORD_OFFSET
    assert ah.shift == 8


def test_ax_aliases_eax_without_shift():
    ax = register_from_id(REG_WORD_OFFSET)
    assert ax.name == "ax"
    assert ax.alias == REG_DWORD_OFFSET
    assert ax.shift == 0


def test_named_fixed_indices():
    assert register_from_id(REG_FLAGS_INDEX).name == "eflags"
    assert register_from_id(REG_EIP_INDEX).name == "eip"
    assert register_from_id(REG_SEG_OFFSET).name == "es"
    assert register_from_id(REG_FPU_OFFSET).name == "st(0)"
    assert register_from_id(NUM_X86_REGS).name == "eip_msr"


def test_ip_aliases_eip():
    assert true_register_id(REG_IP_INDEX) == REG_EIP_INDEX


def test_mmx_aliases_fpu_stack():
    for n in range(8):
        assert true_register_id(REG_MMX_OFFSET + n) == REG_FPU_OFFSET + n


@pytest.mark.parametrize("reg_id", [0, -1, NUM_X86_REGS + 1])
def test_unknown_ids(reg_id):
    assert true_register_id(reg_id) == 0
    with pytest.raises(ValueError):
        register_from_id(reg_id)


def test_true_id_matches_alias_for_all_registers():
    for reg_id in range(1, NUM_X86_REGS + 1):
        reg = register_from_id(reg_id)
        assert true_register_id(reg_id) == (reg.alias or reg_id)
        assert reg.name
        assert reg.size > 0


def test_dword_registers_are_their_own_true_id():
    for reg_id in range(REG_DWORD_OFFSET, REG_WORD_OFFSET):
        assert true_register_id(reg_id) == reg_id