"""
The `packaging` sub-package turns workspace members into RPM files.

This includes:
- Assembling a package specification per crate, with CLI overrides applied.
- Writing specifications to disk through rpmbuild, signing with rpmsign.
- Reading back the RPM lead of a written package for verification.
"""
