"""
서비스 계층 예외
"""


class ServiceError(Exception):
    """사용자에게 그대로 보여줄 메시지와 HTTP 상태 코드를 담는 예외"""

    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFound(ServiceError):
    def __init__(self, message):
        super().__init__(message, 404)


class Forbidden(ServiceError):
    def __init__(self, message):
        super().__init__(message, 403)
