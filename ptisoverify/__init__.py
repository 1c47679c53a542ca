from ._version import __version__
from .errors import (
    DeviceLengthUnavailableError, ExternalToolError, IsoVerifyError, PVDReadError,
    SegmentBoundsError, SourceTruncatedError, TargetError,
)
from .isomd5 import (
    HashSegmentPlan, ImplantedSignature, VerificationResult,
    neutralize_pvd, parse_signature, read_pvd, verify_implanted_md5,
)
from .manifest import ManifestEntry, parse_manifest, verify_contents, verify_manifest
from .source import DeviceTarget, FileTarget, MountTarget, resolve_target
