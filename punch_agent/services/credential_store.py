import base64
import hashlib
import json
import logging
import os
import socket
import uuid
from pathlib import Path
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from punch_agent.errors import CredentialStoreError
from punch_agent.models.employee import Credentials

logger = logging.getLogger(__name__)

IV_SIZE = 12


def derive_key() -> bytes:
    """ホスト名・ホームディレクトリ・MACアドレスから固定の鍵を導出する

    ディスクを覗かれる程度への難読化であり、同じマシンに入れる攻撃者への防御ではない。
    """
    try:
        hostname = socket.gethostname()
    except OSError:
        hostname = "unknown"
    home = str(Path.home())
    mac = f"{uuid.getnode():012x}"
    return hashlib.sha256(f"{hostname}{home}{mac}".encode("utf-8")).digest()


def _encrypt(data: bytes, key: bytes) -> tuple[bytes, bytes]:
    iv = os.urandom(IV_SIZE)
    return AESGCM(key).encrypt(iv, data, None), iv


def _decrypt(ciphertext: bytes, key: bytes, iv: bytes) -> bytes:
    """鍵違い・改ざんは InvalidTag"""
    return AESGCM(key).decrypt(iv, ciphertext, None)


class CredentialStore:
    """
    暗号化した認証情報ファイルを管理するクラス

    ファイル形式: {"data": base64(暗号文), "iv": base64(IV)}、権限は 600。
    パスワードも保存する（トークン失効時に自動再ログインするため）。
    """

    def __init__(self, path: str, key: Optional[bytes] = None):
        self.path = Path(path).expanduser()
        self._key = key or derive_key()

    def save(self, credentials: Credentials) -> None:
        plaintext = json.dumps(
            {
                "domain": credentials.domain,
                "cpf": credentials.cpf,
                "password": credentials.password,
                "token": credentials.token,
            }
        ).encode("utf-8")
        ciphertext, iv = _encrypt(plaintext, self._key)
        payload = {
            "data": base64.b64encode(ciphertext).decode("ascii"),
            "iv": base64.b64encode(iv).decode("ascii"),
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f)
        except OSError as e:
            raise CredentialStoreError(f"認証情報ファイルを保存できません: {e}") from e
        logger.info("認証情報を保存しました: %s", self.path)

    def load(self) -> Optional[Credentials]:
        """保存済みの認証情報を返す。ファイルがなければ None"""
        if not self.path.exists():
            return None
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            ciphertext = base64.b64decode(payload["data"])
            iv = base64.b64decode(payload["iv"])
            data = json.loads(_decrypt(ciphertext, self._key, iv).decode("utf-8"))
        except (OSError, ValueError, KeyError, TypeError, InvalidTag) as e:
            raise CredentialStoreError(f"認証情報ファイルを読み込めません: {e}") from e

        return Credentials(
            domain=data.get("domain", ""),
            cpf=data.get("cpf", ""),
            password=data.get("password", ""),
            token=data.get("token", ""),
        )

    def delete(self) -> None:
        """認証情報ファイルを削除する（存在しなければ何もしない）"""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise CredentialStoreError(f"認証情報ファイルを削除できません: {e}") from e
        logger.info("認証情報を削除しました: %s", self.path)
