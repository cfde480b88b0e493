# exceptions.py


class AttendanceBoardError(Exception):
    """출석부 도메인 예외의 기본 클래스."""


class ValidationError(AttendanceBoardError):
    """허용되지 않은 상태값/교시/좌석 등. 로컬 상태를 바꾸기 전에 발생."""


class RemoteError(AttendanceBoardError):
    """레코드 저장소 접근 실패."""


class TransientRemoteError(RemoteError):
    """쓰기/읽기 일시 실패. 호출 측은 전체 재조회로 맞춘다."""


class InitialLoadError(RemoteError):
    """최초 로딩 실패. 화면은 부분 그리드 대신 재시도 안내를 보여준다."""


class ConfigError(AttendanceBoardError):
    """설정 파일 형식/값 오류."""
