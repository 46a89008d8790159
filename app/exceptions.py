class CMSException(Exception):
    """CMS 基础异常类"""
    def __init__(self, message, code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['code'] = self.code
        rv['success'] = False
        return rv

class ValidationError(CMSException):
    """表单验证错误"""
    def __init__(self, message="Invalid data", payload=None):
        super().__init__(message, code=400, payload=payload)

class AuthError(CMSException):
    """认证失败（凭证错误、账号锁定等）"""
    def __init__(self, message="Invalid credentials", payload=None):
        super().__init__(message, code=401, payload=payload)

class PermissionDenied(CMSException):
    """权限不足"""
    def __init__(self, message="Access denied", payload=None):
        super().__init__(message, code=403, payload=payload)

class NotFound(CMSException):
    """记录不存在"""
    def __init__(self, message="Not found", payload=None):
        super().__init__(message, code=404, payload=payload)

class StoreError(CMSException):
    """
    远程数据存储错误
    message 保留远端原文，直接展示给用户 (例如唯一约束冲突)
    """
    def __init__(self, message="Data store request failed", code=502, payload=None):
        super().__init__(message, code=code, payload=payload)

class StorageError(CMSException):
    """对象存储上传/删除失败"""
    def __init__(self, message="Storage request failed", payload=None):
        super().__init__(message, code=502, payload=payload)

class AuthUnavailable(CMSException):
    """认证服务暂时不可达，会话状态未知"""
    def __init__(self, message="Authentication service unavailable", payload=None):
        super().__init__(message, code=503, payload=payload)
