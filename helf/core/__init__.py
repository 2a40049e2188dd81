"""Cross-cutting concerns: errors, logging, best-effort batches."""
