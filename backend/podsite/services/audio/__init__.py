from .peaks import (  # noqa: F401
    DEFAULT_PEAK_COUNT,
    DecodeError,
    decode_samples,
    extract_peaks,
    format_hint,
    peaks_from_bytes,
)
