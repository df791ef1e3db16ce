UNAUTHORIZED_MARKER = "Unauthorized"


def is_unauthorized(reason: str) -> bool:
    """上流のエラー文言から認可エラーかを判定する（エラーコードは契約外なので部分一致）"""
    return UNAUTHORIZED_MARKER in (reason or "")


def should_recover(reason: str, has_attempted: bool) -> bool:
    """自動再認証を行うか。1セッションにつき1回だけ"""
    return is_unauthorized(reason) and not has_attempted
