"""Disassembler settings, options and error reporting."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional

from .registers import (
    REG_DWORD_OFFSET,
    REG_EBP_INDEX,
    REG_EIP_INDEX,
    REG_ESP_INDEX,
    REG_FLAGS_INDEX,
    REG_FPU_OFFSET,
    REG_SEG_OFFSET,
    Register,
    register_from_id,
)

MAX_INSTRUCTION_SIZE = 20


class Options(enum.IntFlag):
    """User-controlled disassembler options."""

    NONE = 0
    IGNORE_NULLS = 1
    MODE_16_BIT = 2
    ATT_MNEMONICS = 4


class ReportCode(enum.IntEnum):
    """Kinds of problem passed to a reporter."""

    DISASM_BOUNDS = 0
    INSN_BOUNDS = 1
    INVALID_INSN = 2
    UNKNOWN = 3


Reporter = Callable[[ReportCode, Any], None]


@dataclass
class Settings:
    """Machine description and user options for the IA-32 decoder."""

    options: Options = Options.NONE
    reporter: Optional[Reporter] = field(default=None, compare=False)
    endian: int = 1  # 0 = big, 1 = little
    wc_byte: int = 0xF4
    max_insn: int = MAX_INSTRUCTION_SIZE
    sz_addr: int = 4
    sz_oper: int = 4
    sz_byte: int = 8
    sz_word: int = 4
    sz_dword: int = 8
    id_sp_reg: int = REG_ESP_INDEX
    id_fp_reg: int = REG_EBP_INDEX
    id_ip_reg: int = REG_EIP_INDEX
    id_flag_reg: int = REG_FLAGS_INDEX
    offset_gen_regs: int = REG_DWORD_OFFSET
    offset_seg_regs: int = REG_SEG_OFFSET
    offset_fpu_regs: int = REG_FPU_OFFSET

    def report(self, code: ReportCode, data: Any) -> None:
        """Pass a problem to the reporter, if one is installed."""
        if self.reporter is not None:
            self.reporter(code, data)

    def reg_from_id(self, reg_id: int) -> Register:
        """Return the register with the given id."""
        return register_from_id(reg_id)