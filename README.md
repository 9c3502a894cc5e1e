# ia32kit

A small toolkit for working with decoded IA-32 (32-bit x86) instructions. It has
no dependencies. It provides the register table, little-endian immediate reading,
decoding of operands that need no ModR/M byte, instruction and operand models,
walkers that drive a decoder over a buffer, and text formatting in native,
Intel, AT&T, raw and XML styles.

## Installation

```
pip install ia32kit
```

To run the test suite:

```
pip install "ia32kit[test]"
pytest
```

## Modules

- `ia32kit.registers`: the IA-32 register table.
  - `register_from_id(reg_id)` returns a frozen `Register` with name, size,
    `RegisterType` flags, alias and shift. It raises `ValueError` for an
    unknown id.
  - `true_register_id(reg_id)` maps a sub-register such as `al` or `ax` to the
    full register it lives in. An unaliased register maps to itself and an
    unknown id maps to 0.
- `ia32kit.settings`: the `Settings` dataclass.
  - It holds the architecture defaults: little-endian, 4-byte address and
    operand size, a maximum instruction size of 20, and the ids of the stack,
    frame, instruction and flags registers.
  - It also holds the user `Options` and an optional reporter callable.
  - `Settings.report(code, data)` passes a `ReportCode` to that reporter.
  - `Settings.reg_from_id(reg_id)` looks up a register.
- `ia32kit.immediates`: `read_unsigned(buf, size)` and `read_signed(buf, size)`
  read little-endian immediates.
  - A 6-byte size is read as a full qword.
  - An unrecognised size is read as a dword.
  - Asking for more bytes than the buffer holds raises `ValueError`.
- `ia32kit.insn`: the `Instruction`, `Operand` and `EffectiveAddress`
  dataclasses, with their enumerations: `OperandType`, `DataType`, `Access`,
  `OperandFlags`, `OperandFilter`, `InsnType`, `InsnGroup`, `InsnPrefix`,
  `InsnNote` and `FlagStatus`. `Instruction` offers:
  - `add_operand()` and `clear_operands()`;
  - `first()`, `second()` and `third()` for the explicit operands;
  - `operands_matching(selector)` and `operand_count(selector)`, which select
    operands through `OperandFilter`;
  - `target_address()`, `rel_offset()`, `branch_target()`, `immediate()`,
    `raw_immediate()` and `is_valid()`.

  `Operand.byte_size()` gives the size of the operand's data type.
- `ia32kit.operands`: `decode_operand(buf, insn, method, encoding, access, flags, prefixes, value)`
  appends one operand to an instruction and returns the number of encoded
  bytes it takes.
  - It handles the `AddressingMethod` values that carry no ModR/M byte:
    direct addresses, immediates, relative offsets, memory offsets, string
    operands, and registers or immediates hard-coded in the opcode.
  - `operand_size(encoding, insn, op)` sets an operand's `DataType` from its
    `OperandEncoding`.
  - `apply_segment(op, prefixes)` marks a memory operand with a
    `SegmentPrefix` override.
- `ia32kit.walk`: walkers that drive a decoder over a buffer.
  - `disassemble(decoder, buf, rva, offset, settings)` decodes one instruction.
    It returns `None` on failure and reports the failure through the settings.
  - `disassemble_range(...)` is a generator that yields instructions linearly
    over a byte range. It skips one byte after each failure.
  - `disassemble_forward(...)` is a generator that follows jump and call
    targets within the buffer. It stops after an unconditional jump or a
    return. It takes an optional resolver for branch targets.
- `ia32kit.names`: the `Syntax` enumeration and the text names used in output:
  `prefix_string`, `regtype_string`, `datatype_string`, `eflags_string`,
  `group_string`, `type_string`, `cpu_string`, `isa_string` and `note_string`.
- `ia32kit.opformat`: the operand formatters.
  - `format_operand(op, syntax)` renders one operand.
  - `format_expression(ea, syntax)` renders an effective address.
  - `format_segment(op, syntax)` renders a segment override.
  - `operand_data_string(op)` gives an immediate's value as text.
- `ia32kit.insnformat`: the instruction formatters.
  - `format_instruction(insn, syntax)` renders a whole instruction.
  - `format_mnemonic(insn, syntax)` renders the mnemonic. With
    `Syntax.ATT` it adds the AT&T size suffix or `l` prefix.
  - `format_header(syntax)` gives the column header for a syntax.

## Example

```python
from ia32kit.insn import Instruction, OperandType
from ia32kit.names import Syntax
from ia32kit.insnformat import format_instruction
from ia32kit.operands import AddressingMethod, OperandEncoding, decode_operand
from ia32kit.registers import register_from_id

insn = Instruction(mnemonic="push")
op = insn.add_operand()
op.type = OperandType.REGISTER
op.reg = register_from_id(6)  # ebp

print(format_instruction(insn, Syntax.INTEL))   # push\tebp
print(format_instruction(insn, Syntax.ATT))     # push\t%ebp

imm = Instruction(mnemonic="push")
decode_operand(b"\x10\x00\x00\x00", imm, AddressingMethod.I, OperandEncoding.V)  # returns 4
print(format_instruction(imm, Syntax.INTEL))    # push\t0x00000010
```

## Writing a decoder for the walkers

The walkers in `ia32kit.walk` take a decoder. A decoder is a callable
`decoder(window, available, insn) -> size`:

- `window` holds the bytes at the current position, zero-padded to the maximum
  instruction size.
- `available` is the number of real bytes left in the buffer.
- `insn` is an `Instruction` for the decoder to fill in.
- The return value is the number of bytes consumed, or 0 for an invalid
  instruction.

A result larger than `available` is reported as `ReportCode.INSN_BOUNDS`, and
the instruction is dropped.

## What this package does not do

The package contains no opcode tables and no ModR/M or SIB decoding. It cannot
turn raw machine code into instructions by itself. `decode_operand` covers only
the operand kinds that need no ModR/M byte, and any full decoder has to be
supplied to the walkers by the caller. The package also has no command-line
program.