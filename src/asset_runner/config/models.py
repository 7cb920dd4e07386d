from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, ClassVar, Dict, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

AssetKind = Literal["styles", "scripts", "images", "copy"]
AssetMode = Literal["entries", "files"]

_WEBP_SOURCE_SUFFIXES = (".jpg", ".jpeg", ".png")


class AppSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    project_root: str = "."
    cache_dir: str = ".asset-runner-cache"
    debounce_seconds: float = Field(default=0.3, gt=0)
    use_polling: bool = False


class FileRotationSettings(BaseModel):
    """
    Date-based rotation settings (daily).

    This maps cleanly to Python's standard library TimedRotatingFileHandler behavior.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    backup_count: int = 7


class FileLoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = ""
    rotation: FileRotationSettings = FileRotationSettings()


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    level: str = "INFO"
    file: FileLoggingSettings = FileLoggingSettings()


class CleanupSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    # Paths relative to app.project_root; a trailing "/" protects a whole directory.
    exclude_files: Sequence[str] = ()


class StyleOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    source_map: bool = False
    minify: bool = False
    partial_index: bool = True

    def secondary_artifacts(self, dest: Path) -> List[Path]:
        if self.source_map:
            return [dest.with_name(dest.name + ".map")]
        return []


class ScriptOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    source_map: bool = False
    minify: bool = False
    bundle: bool = True
    drop_console: bool = False

    def secondary_artifacts(self, dest: Path) -> List[Path]:
        if self.source_map:
            return [dest.with_name(dest.name + ".map")]
        return []


class ImageOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    convert_to_webp: bool = True
    image_quality: int = Field(default=80, ge=1, le=100)
    max_width: int = Field(default=3840, gt=0)
    exclude_from_optimization: Sequence[str] = ()

    def secondary_artifacts(self, dest: Path) -> List[Path]:
        if self.convert_to_webp and dest.suffix.lower() in _WEBP_SOURCE_SUFFIXES:
            return [dest.with_suffix(".webp")]
        return []


class CopyOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def secondary_artifacts(self, dest: Path) -> List[Path]:
        _ = dest
        return []


class _AssetSettingsBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    mode: ClassVar[AssetMode]

    src: str = Field(min_length=1)
    dist: str = Field(min_length=1)
    # "copy" or a "package.module:callable" import path.
    transform: str = "copy"
    use_cache: bool = False
    clean: bool = True


class StyleAssetSettings(_AssetSettingsBase):
    mode: ClassVar[AssetMode] = "entries"

    kind: Literal["styles"]
    pattern: str = "*.scss"
    partial_prefix: str = "_"
    dest_suffix: Optional[str] = ".css"
    options: StyleOptions = StyleOptions()


class ScriptAssetSettings(_AssetSettingsBase):
    mode: ClassVar[AssetMode] = "entries"

    kind: Literal["scripts"]
    pattern: str = "*.js"
    partial_prefix: str = "_"
    dest_suffix: Optional[str] = None
    options: ScriptOptions = ScriptOptions()


class ImageAssetSettings(_AssetSettingsBase):
    mode: ClassVar[AssetMode] = "files"

    kind: Literal["images"]
    pattern: str = "*"
    dest_suffix: Optional[str] = None
    options: ImageOptions = ImageOptions()


class CopyAssetSettings(_AssetSettingsBase):
    mode: ClassVar[AssetMode] = "files"

    kind: Literal["copy"]
    pattern: str = "*"
    dest_suffix: Optional[str] = None
    options: CopyOptions = CopyOptions()


AssetSettings = Annotated[
    Union[StyleAssetSettings, ScriptAssetSettings, ImageAssetSettings, CopyAssetSettings],
    Field(discriminator="kind"),
]


class AppConfig(BaseModel):
    """
    Effective runtime configuration after applying all precedence rules.

    Constructed once at process start and passed explicitly to every component.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    app: AppSettings = AppSettings()
    logging: LoggingSettings = LoggingSettings()
    cleanup: CleanupSettings = CleanupSettings()
    assets: Dict[str, AssetSettings] = Field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ConfigLoadRequest:
    """
    Optional inputs for a configuration loader.

    Implementations may use these to control where configuration is read from.
    """

    yaml_path: str = "asset-runner.yaml"
    env_prefix: str = "ASSET_RUNNER__"
    dotenv_path: Optional[str] = ".env"
