"""IA-32 register table, instruction model, operand decoding helpers,
disassembly walkers and assembly text formatting."""

__version__ = "0.1.0"