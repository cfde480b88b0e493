# logic/zoom.py
from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from attendance_board.models.attendance import PERIODS

MIN_SCALE = 0.3
MAX_SCALE = 2.0
WHEEL_STEP = 1.1          # 휠 한 칸(120)당 배율
WHEEL_NOTCH = 120.0

Point = Tuple[float, float]


@dataclass(frozen=True)
class GridMetrics:
    """배율 1.0 기준 픽셀 크기."""
    seat_width: int = 50
    name_width: int = 80
    period_width: int = 45
    row_height: int = 40
    header_date_height: int = 40
    header_period_height: int = 35

    @property
    def fixed_width(self) -> int:
        # 좌측 고정 열(좌석+이름)
        return self.seat_width + self.name_width

    @property
    def day_width(self) -> int:
        return self.period_width * len(PERIODS)

    @property
    def header_height(self) -> int:
        return self.header_date_height + self.header_period_height

    @staticmethod
    def from_config(grid) -> "GridMetrics":
        return GridMetrics(grid.seat_width, grid.name_width, grid.period_width,
                           grid.row_height, grid.header_date_height, grid.header_period_height)


def clamp_scale(scale: float, lo: float = MIN_SCALE, hi: float = MAX_SCALE) -> float:
    return max(lo, min(hi, scale))


def content_at(scroll: float, pointer: float, scale: float) -> float:
    """포인터 아래 콘텐츠 좌표(배율 1.0 기준)."""
    return (scroll + pointer) / scale


def anchored_scroll(content: float, new_scale: float, pointer: float) -> float:
    """새 배율에서 content가 다시 pointer 아래 오도록 하는 스크롤 값."""
    return content * new_scale - pointer


def zoom_at(scroll: float, pointer: float, scale: float, new_scale: float,
            lo: float = MIN_SCALE, hi: float = MAX_SCALE) -> Tuple[float, float]:
    """배율 변경 전 앵커 계산 → (clamp된 배율, 새 스크롤)."""
    content = content_at(scroll, pointer, scale)
    new_scale = clamp_scale(new_scale, lo, hi)
    return new_scale, anchored_scroll(content, new_scale, pointer)


def wheel_factor(angle_delta: float) -> float:
    """위로 굴리면(+) 확대."""
    return WHEEL_STEP ** (angle_delta / WHEEL_NOTCH)


def fit_scale(viewport_width: float, metrics: GridMetrics,
              lo: float = MIN_SCALE, hi: float = MAX_SCALE) -> float:
    """하루치 열(고정 열 포함)이 화면 폭에 맞는 배율."""
    return clamp_scale(viewport_width / (metrics.fixed_width + metrics.day_width), lo, hi)


def day_scroll(day_index: int, scale: float, metrics: GridMetrics) -> float:
    """day_index번째 날의 첫 열이 왼쪽 끝에 오는 가로 스크롤 값."""
    return max(0, day_index) * metrics.day_width * scale


class ViewState:
    """
    그리드 화면 하나가 소유하는 세션 상태(배율).
    모듈 전역이 아니라 뷰에 주입해서 쓴다.
    """

    def __init__(self, metrics: Optional[GridMetrics] = None, scale: float = 1.0,
                 min_scale: float = MIN_SCALE, max_scale: float = MAX_SCALE):
        self.metrics = metrics or GridMetrics()
        self.min_scale = min_scale
        self.max_scale = max_scale
        self.scale = clamp_scale(scale, min_scale, max_scale)

    def clamp(self, scale: float) -> float:
        return clamp_scale(scale, self.min_scale, self.max_scale)

    def px(self, base: float) -> int:
        return max(1, int(round(base * self.scale)))

    @property
    def period_width(self) -> int:
        return self.px(self.metrics.period_width)

    @property
    def row_height(self) -> int:
        return self.px(self.metrics.row_height)

    @property
    def fixed_width(self) -> int:
        return self.px(self.metrics.fixed_width)


def _distance(p1: Point, p2: Point) -> float:
    return math.hypot(p2[0] - p1[0], p2[1] - p1[1])


def _midpoint(p1: Point, p2: Point) -> Point:
    return (p1[0] + p2[0]) / 2.0, (p1[1] + p2[1]) / 2.0


@dataclass(frozen=True)
class PinchResult:
    scale: float
    scroll_x: float
    scroll_y: float


class PinchTracker:
    """
    두 손가락 확대/축소.
    - 진행 중: 거리 비율로 미리보기 배율만 계산(레이아웃 재계산 없음)
    - 종료: 배율 한 번 확정 + 두 점의 중점 기준으로 스크롤 재계산
    """

    def __init__(self, min_scale: float = MIN_SCALE, max_scale: float = MAX_SCALE):
        self.min_scale = min_scale
        self.max_scale = max_scale
        self._start_dist: Optional[float] = None
        self._start_scale = 1.0
        self._anchor: Point = (0.0, 0.0)
        self._content: Point = (0.0, 0.0)
        self._ratio = 1.0

    @property
    def active(self) -> bool:
        return self._start_dist is not None

    @property
    def anchor(self) -> Point:
        return self._anchor

    def begin(self, p1: Point, p2: Point, scale: float, scroll_x: float, scroll_y: float) -> bool:
        dist = _distance(p1, p2)
        if dist < 1.0:
            return False
        self.begin_at(_midpoint(p1, p2), scale, scroll_x, scroll_y)
        self._start_dist = dist
        return True

    def begin_at(self, anchor: Point, scale: float, scroll_x: float, scroll_y: float) -> None:
        """중점을 직접 아는 경우(QPinchGesture 등)."""
        self._start_dist = 1.0
        self._start_scale = scale
        self._anchor = anchor
        self._content = (content_at(scroll_x, anchor[0], scale),
                         content_at(scroll_y, anchor[1], scale))
        self._ratio = 1.0

    def update(self, p1: Point, p2: Point) -> float:
        """미리보기용 시각 배율(시작 배율 대비)."""
        if self._start_dist is None:
            return 1.0
        return self.update_ratio(_distance(p1, p2) / self._start_dist)

    def update_ratio(self, raw: float) -> float:
        """시작 대비 거리 비율 → 미리보기 배율. 최종 배율 범위를 넘지 않게 자름."""
        if self._start_dist is None:
            return 1.0
        target = clamp_scale(self._start_scale * raw, self.min_scale, self.max_scale)
        self._ratio = target / self._start_scale
        return self._ratio

    def end(self) -> Optional[PinchResult]:
        if self._start_dist is None:
            return None
        new_scale = clamp_scale(self._start_scale * self._ratio, self.min_scale, self.max_scale)
        result = PinchResult(
            new_scale,
            anchored_scroll(self._content[0], new_scale, self._anchor[0]),
            anchored_scroll(self._content[1], new_scale, self._anchor[1]),
        )
        self.cancel()
        return result

    def cancel(self) -> None:
        self._start_dist = None
        self._ratio = 1.0
