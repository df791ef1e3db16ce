import re

from punch_agent.errors import ValidationError

DOMAIN_PATTERN = re.compile(r"^([a-zA-Z0-9]+(-[a-zA-Z0-9]+)*\.)+[a-zA-Z]{2,}$")
CPF_LENGTH = 11
MIN_PASSWORD_LENGTH = 3


def validate_domain(value: str) -> str:
    """会社ドメイン（例: exemplo.com.br）"""
    value = value.strip()
    if not value:
        raise ValidationError("ドメインを入力してください")
    if not DOMAIN_PATTERN.match(value):
        raise ValidationError("ドメインの形式が正しくありません")
    return value


def validate_cpf(value: str) -> str:
    """CPF は数字11桁"""
    value = value.strip()
    if len(value) != CPF_LENGTH:
        raise ValidationError(f"CPFは{CPF_LENGTH}桁で入力してください")
    if not value.isdigit():
        raise ValidationError("CPFは数字のみ入力できます")
    return value


def validate_password(value: str) -> str:
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"パスワードは{MIN_PASSWORD_LENGTH}文字以上で入力してください")
    return value
