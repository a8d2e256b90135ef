"""Pure domain values shared by the kernel, engines and services."""
