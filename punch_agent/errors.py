class PunchAgentError(Exception):
    """打刻クライアントの基底例外"""


class ValidationError(PunchAgentError):
    """フォーム入力の検証エラー（フォーム内で表示され、エンジンには届かない）"""


class AuthError(PunchAgentError):
    """ログイン拒否"""


class FetchError(PunchAgentError):
    """打刻イベント一覧の取得失敗"""


class ParseError(FetchError):
    """上流データのタイムスタンプ不正（バッチ全体を中断する）"""


class SubmitError(PunchAgentError):
    """打刻送信の失敗"""


class CredentialStoreError(PunchAgentError):
    """暗号化認証情報ファイルの読み書き失敗"""
