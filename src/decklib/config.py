"""Build configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

DEFAULT_PRESENTATIONS_DIR = Path("presentations")
DEFAULT_DOCS_DIR = Path("docs")
ACCESS_CODE_FILENAME = "access-code.txt"


@dataclass(frozen=True, slots=True)
class LibraryConfig:
    """Immutable settings bundle passed to every build stage."""

    presentations_dir: Path = DEFAULT_PRESENTATIONS_DIR
    docs_dir: Path = DEFAULT_DOCS_DIR
    site_title: str = "Presentation Library"
    default_author: str = "Unknown"
    thumbnail_width: int = 800
    thumbnail_height: int = 450
    viewport_width: int = 1920
    viewport_height: int = 1080
    navigation_timeout_ms: int = 10_000
    settle_delay_ms: int = 2_000
    access_codes: tuple[str, ...] = ()
    access_window_hours: int = 24
    render_thumbnails: bool = True
    skip_unreadable: bool = False

    def __post_init__(self) -> None:
        if self.thumbnail_width <= 0 or self.thumbnail_height <= 0:
            raise ValueError("Thumbnail dimensions must be positive")
        if self.access_window_hours <= 0:
            raise ValueError("Access window must be at least one hour")
        for code in self.access_codes:
            if not code.strip():
                raise ValueError("Access codes must not be blank")

    @property
    def thumbnail_size(self) -> tuple[int, int]:
        return (self.thumbnail_width, self.thumbnail_height)

    @property
    def output_presentations_dir(self) -> Path:
        return Path(self.docs_dir) / "presentations"

    @property
    def thumbnails_dir(self) -> Path:
        return Path(self.docs_dir) / "thumbnails"

    @property
    def access_code_path(self) -> Path:
        # Kept beside the published folder so the code is never deployed.
        return Path(self.docs_dir).parent / ACCESS_CODE_FILENAME

    def resolve_paths(self, base_dir: Path | None = None) -> LibraryConfig:
        """Return a copy with relative directories anchored at ``base_dir``."""
        if base_dir is None:
            return self

        def _resolve(path: Path) -> Path:
            path = Path(path)
            return path if path.is_absolute() else base_dir / path

        return replace(
            self,
            presentations_dir=_resolve(self.presentations_dir),
            docs_dir=_resolve(self.docs_dir),
        )
