"""
画面状態（ViewState）と状態遷移関数
遷移関数はすべて純粋関数で、新しい ViewState を返す
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from .camera import CameraState
from .capture import SelectedImage
from .styles import StyleSelection


@dataclass(frozen=True)
class ViewState:
    image: Optional[SelectedImage] = None
    selection: StyleSelection = field(default_factory=StyleSelection)
    loading: bool = False
    error: str = ""
    output_image: Optional[str] = None
    camera_state: CameraState = CameraState.CLOSED

    def to_dict(self) -> Dict[str, Any]:
        """JSONシリアライズ可能な形（画像バイトはプレビュー data-URI に置き換え）"""
        return {
            "has_image": self.image is not None,
            "preview_image": self.image.to_data_uri() if self.image else None,
            "image_source": self.image.source.value if self.image else None,
            "filename": self.image.filename if self.image else None,
            "selection": self.selection.to_dict(),
            "loading": self.loading,
            "error": self.error,
            "output_image": self.output_image,
            "camera_state": self.camera_state.value,
        }


def image_selected(state: ViewState, image: SelectedImage) -> ViewState:
    return replace(state, image=image, error="", output_image=None)


def image_rejected(state: ViewState, message: str) -> ViewState:
    # 既存の画像はそのまま
    return replace(state, error=message)


def image_cleared(state: ViewState) -> ViewState:
    return replace(state, image=None, output_image=None, error="")


def style_changed(state: ViewState, **changes: str) -> ViewState:
    return replace(state, selection=replace(state.selection, **changes))


def submit_started(state: ViewState) -> ViewState:
    return replace(state, loading=True, error="", output_image=None)


def submit_succeeded(state: ViewState, output_image: str) -> ViewState:
    return replace(state, loading=False, output_image=output_image, error="")


def submit_failed(state: ViewState, message: str) -> ViewState:
    return replace(state, loading=False, output_image=None, error=message)


def loading_finished(state: ViewState) -> ViewState:
    return replace(state, loading=False)


def camera_changed(state: ViewState, camera_state: CameraState) -> ViewState:
    error = "" if camera_state in (CameraState.REQUESTING, CameraState.READY) else state.error
    return replace(state, camera_state=camera_state, error=error)


def camera_failed(state: ViewState, message: str) -> ViewState:
    return replace(state, camera_state=CameraState.ERROR, error=message)


def error_raised(state: ViewState, message: str) -> ViewState:
    return replace(state, error=message)


def camera_synced(state: ViewState, camera_state: CameraState) -> ViewState:
    # 共有カメラの実際の状態に合わせる（エラー表示はそのまま）
    return replace(state, camera_state=camera_state)
