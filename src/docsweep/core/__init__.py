"""Runtime primitives shared by every docsweep report."""
