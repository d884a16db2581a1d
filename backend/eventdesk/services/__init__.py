"""Services — async orchestration of core rules over an AsyncSession."""
