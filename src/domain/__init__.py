# -----------------------------------------------------------------------------
# DOMAIN LAYER
# -----------------------------------------------------------------------------
# Contains the install plan (Pydantic models) shared by the CLI, the
# configuration loader and the Installer.
# -----------------------------------------------------------------------------

from .models import CertMode, InstallConfig, StepRecord, StepState

__all__ = ["CertMode", "InstallConfig", "StepRecord", "StepState"]
