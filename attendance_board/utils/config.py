# utils/config.py
from __future__ import annotations
import sys
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Type

import yaml
from loguru import logger
from pydantic import BaseModel, ValidationError as PydanticValidationError, field_validator, model_validator

from attendance_board.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "attendance_board.yaml"


class LoggingConfig(BaseModel):
    log_file: Optional[str] = None
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        v = v.upper()
        if v not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"알 수 없는 로그 레벨: {v}")
        return v


class DatabaseConfig(BaseModel):
    sqlite_path: str = "data/attendance.sqlite3"


class GridConfig(BaseModel):
    branch: str = "망미점"
    seat_capacity: int = 102
    interaction_mode: Literal["direct", "cursor"] = "direct"
    view: Literal["daily", "monthly"] = "daily"
    long_press_ms: int = 500
    min_scale: float = 0.3
    max_scale: float = 2.0
    # 기본 픽셀 크기(배율 1.0 기준)
    seat_width: int = 50
    name_width: int = 80
    period_width: int = 45
    row_height: int = 40
    header_date_height: int = 40
    header_period_height: int = 35

    @field_validator("seat_capacity", "long_press_ms", "seat_width", "name_width",
                     "period_width", "row_height", "header_date_height", "header_period_height")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("0보다 커야 합니다.")
        return v

    @model_validator(mode="after")
    def _scale_range(self) -> "GridConfig":
        if not 0 < self.min_scale <= self.max_scale:
            raise ValueError(f"배율 범위가 잘못됨: {self.min_scale}..{self.max_scale}")
        return self


class AppConfig(BaseModel):
    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()
    grid: GridConfig = GridConfig()


def _parse_section(raw: Dict[str, Any], section: str, model: Type[BaseModel]) -> Any:
    data = raw.get(section) or {}
    logger.debug(f"설정 섹션 '{section}' 파싱: {data}")
    return model(**data)


def load_config(path: Optional[Path] = None) -> AppConfig:
    """
    YAML 설정 로드. 파일이 없으면 기본값.
    - path=None: 기본 경로(config/attendance_board.yaml)가 있으면 사용
    """
    path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not path.exists():
        logger.debug(f"설정 파일 없음({path}), 기본값 사용")
        return AppConfig()
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"설정 파일 읽기 실패: {e}")
        raise ConfigError(f"설정 파일을 읽을 수 없습니다: {path}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"설정 파일 최상위는 매핑이어야 합니다: {path}")
    try:
        cfg = AppConfig(
            database=_parse_section(raw, "database", DatabaseConfig),
            logging=_parse_section(raw, "logging", LoggingConfig),
            grid=_parse_section(raw, "grid", GridConfig),
        )
    except PydanticValidationError as e:
        logger.error(f"설정 검증 실패: {e}")
        raise ConfigError(str(e)) from e
    logger.debug(f"설정 로드 완료: {path}")
    return cfg


def setup_logging(cfg: LoggingConfig) -> None:
    """loguru 초기화: stderr + (선택) 로그 파일."""
    logger.remove()
    if cfg.log_file:
        Path(cfg.log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(cfg.log_file, level=cfg.log_level, rotation="1 MB", encoding="utf-8")
    logger.add(sys.stderr, level=cfg.log_level)
