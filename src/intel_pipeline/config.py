"""Pipeline configuration: where a daily run reads, keeps history and writes."""

from dataclasses import dataclass, field
from pathlib import Path

import config as app_config


@dataclass
class PipelineConfig:
    """Locations and retention for one daily run.

    Attributes:
        data_dir: Directory with the day's source documents.
        history_dir: Directory holding history files and install snapshots.
        output_dir: Directory receiving the run outputs.
        source_files: Source name -> document file name.
        momentum_retention: Momentum history entries kept.
        hiring_retention: Hiring history entries kept.
    """

    data_dir: str = app_config.DATA_DIR
    history_dir: str = app_config.HISTORY_DIR
    output_dir: str = app_config.OUTPUT_DIR
    source_files: dict[str, str] = field(
        default_factory=lambda: dict(app_config.SOURCE_FILES)
    )
    momentum_retention: int = app_config.MOMENTUM_RETENTION
    hiring_retention: int = app_config.HIRING_RETENTION
    momentum_history_file: str = app_config.MOMENTUM_HISTORY_FILE
    hiring_history_file: str = app_config.HIRING_HISTORY_FILE
    install_snapshot_prefix: str = app_config.INSTALL_SNAPSHOT_PREFIX
    scores_output_file: str = app_config.SCORES_OUTPUT_FILE
    alerts_output_file: str = app_config.ALERTS_OUTPUT_FILE
    patterns_output_file: str = app_config.PATTERNS_OUTPUT_FILE

    @property
    def momentum_history_path(self) -> Path:
        return Path(self.history_dir) / self.momentum_history_file

    @property
    def hiring_history_path(self) -> Path:
        return Path(self.history_dir) / self.hiring_history_file

    def output_path(self, filename: str) -> Path:
        return Path(self.output_dir) / filename
