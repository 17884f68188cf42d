"""Services — imperative shell: every function takes an AsyncSession and
orchestrates core/ rules around reads and writes."""
