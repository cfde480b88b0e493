# app.py
from __future__ import annotations
import argparse
import sys
from pathlib import Path

from loguru import logger

from attendance_board.exceptions import AttendanceBoardError, ConfigError
from attendance_board.utils.config import load_config, setup_logging


def parse_args(argv=None):
    p = argparse.ArgumentParser(prog="attendance-board", description="지점 출석부")
    p.add_argument("--config", type=Path, default=None, help="YAML 설정 파일")
    p.add_argument("--db", default=None, help="SQLite 파일 경로(설정값 대신)")
    p.add_argument("--branch", default=None, help="지점 이름")
    p.add_argument("--mode", choices=["direct", "cursor"], default=None, help="입력 모드")
    p.add_argument("--view", choices=["daily", "monthly"], default=None, help="일간/월간")
    p.add_argument("--seed", action="store_true", help="명단이 비어 있으면 예시 인원 추가")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"설정 오류: {e}")
        return 2

    overrides = {k: v for k, v in (("branch", args.branch), ("interaction_mode", args.mode),
                                   ("view", args.view)) if v is not None}
    grid_cfg = cfg.grid.model_copy(update=overrides)
    setup_logging(cfg.logging)

    # Qt 위젯은 설정/로깅 이후에 불러온다
    from PySide6.QtWidgets import QApplication
    from attendance_board.data.repo import Repo
    from attendance_board.gui.main_window import MainWindow

    db_path = args.db or cfg.database.sqlite_path
    try:
        repo = Repo(db_path)
        if args.seed:
            repo.seed_if_empty(grid_cfg.branch, grid_cfg.seat_capacity)
    except AttendanceBoardError as e:
        logger.error(f"저장소를 열 수 없습니다: {e}")
        return 1
    logger.info(f"출석부 시작: 지점={grid_cfg.branch}, db={db_path}")

    app = QApplication(sys.argv[:1])
    win = MainWindow(repo, grid_cfg)
    win.show()
    code = app.exec()
    repo.close()
    return code


if __name__ == "__main__":
    sys.exit(main())
