"""
入力画像の取得元（ファイル選択・ドラッグ&ドロップ・カメラ）を共通の SelectedImage にまとめる
"""

from __future__ import annotations
import base64
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import InvalidImageError, MissingPhotoError

logger = logging.getLogger(__name__)


class CaptureSource(str, Enum):
    FILE = "file"
    DROP = "drop"
    CAMERA = "camera"


@dataclass(frozen=True)
class SelectedImage:
    """メモリ上の画像（永続化しない）"""
    data: bytes
    mime_type: str
    filename: str = ""
    source: CaptureSource = CaptureSource.FILE

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("utf-8")

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"

    @property
    def size(self) -> int:
        return len(self.data)


def is_image_mime(mime_type: Optional[str]) -> bool:
    return bool(mime_type) and mime_type.lower().startswith("image/")


def parse_source(raw: Optional[str]) -> CaptureSource:
    try:
        return CaptureSource((raw or CaptureSource.FILE.value).lower())
    except ValueError:
        raise InvalidImageError(f"Unknown capture source: {raw}")


def select_image(data: Optional[bytes],
                 mime_type: Optional[str],
                 filename: str = "",
                 source: CaptureSource = CaptureSource.FILE) -> SelectedImage:
    """
    画像を検証して SelectedImage を返す

    Args:
        data: 画像バイト列
        mime_type: MIMEタイプ（image/ で始まる必要がある）
        filename: 元のファイル名
        source: 取得元

    Returns:
        SelectedImage

    Raises:
        MissingPhotoError: データが空
        InvalidImageError: 画像以外のMIMEタイプ
    """
    if not is_image_mime(mime_type):
        logger.info(f"Rejected {source.value} input: mime={mime_type!r} filename={filename!r}")
        raise InvalidImageError()
    if not data:
        raise MissingPhotoError()
    return SelectedImage(data=data, mime_type=mime_type, filename=filename, source=source)


def select_upload(file_storage, source: CaptureSource = CaptureSource.FILE) -> SelectedImage:
    """werkzeug の FileStorage から SelectedImage を作る（ファイル選択・ドロップ共通）"""
    if file_storage is None or file_storage.filename == "":
        raise MissingPhotoError()
    return select_image(file_storage.read(), file_storage.mimetype, file_storage.filename, source)
