"""
送信パイプライン
写真 → base64 → プロンプト生成 → バックエンド呼び出し → 出力画像（data-URI）
"""

from __future__ import annotations
import base64
import binascii
import logging
import re
import time
from contextlib import contextmanager, nullcontext
from typing import Callable, Iterator, Optional, Tuple

from .backends import ImageTransformBackend
from .capture import SelectedImage
from .errors import HairstyleStudioError, MissingPhotoError, SubmissionInProgressError
from .prompt_composer import compose_from_selection
from .styles import StyleSelection
from .view_state import ViewState, loading_finished, submit_started

logger = logging.getLogger(__name__)

DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[\w=.+-]+)*;base64,(?P<data>.*)$", re.DOTALL)


class SubmissionPipeline:
    def __init__(self, backend: ImageTransformBackend):
        self.backend = backend

    def submit(self,
               image: Optional[SelectedImage],
               selection: Optional[StyleSelection] = None,
               access_token: Optional[str] = None) -> str:
        """
        写真とスタイル選択を送信し、生成画像の data-URI を返す

        Raises:
            MissingPhotoError: 写真が未選択
            HairstyleStudioError: 通信・レスポンス形式のエラー
        """
        if image is None:
            raise MissingPhotoError()

        prompt = compose_from_selection(selection)
        logger.info(f"Submitting {image.mime_type} ({image.size} bytes) via {self.backend.name} backend")
        try:
            return self.backend.transform(image, prompt, access_token=access_token)
        except HairstyleStudioError:
            raise
        except Exception as e:
            logger.exception(f"Unexpected submission error: {e}")
            raise HairstyleStudioError() from e


@contextmanager
def loading(get_state: Callable[[], ViewState],
            set_state: Callable[[ViewState], None],
            lock=None) -> Iterator[None]:
    """
    送信中フラグを立て、成功・失敗にかかわらず必ず下ろす。
    すでに送信中なら SubmissionInProgressError（同時に1件まで）
    """
    guard = lock if lock is not None else nullcontext()
    with guard:
        state = get_state()
        if state.loading:
            raise SubmissionInProgressError()
        set_state(submit_started(state))
    try:
        yield
    finally:
        with guard:
            set_state(loading_finished(get_state()))


def download_filename(hairstyle: str, now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"hairstyle-{hairstyle}-{now_ms}.png"


def decode_data_uri(uri: str) -> Tuple[str, bytes]:
    """data-URI → (MIMEタイプ, バイト列)"""
    m = DATA_URI_RE.match(uri or "")
    if not m:
        raise ValueError("Not a base64 data URI")
    try:
        data = base64.b64decode(m.group("data"), validate=False)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e
    return m.group("mime") or "application/octet-stream", data
