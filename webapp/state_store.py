import threading
import uuid
from typing import Callable, Dict, Optional

from hairstyle_studio.view_state import ViewState


class StateStore:
    """セッションごとの ViewState を保持するクラス（メモリのみ、永続化しない）"""

    def __init__(self):
        self._states: Dict[str, ViewState] = {}
        self.lock = threading.RLock()

    @staticmethod
    def new_session_id() -> str:
        return uuid.uuid4().hex

    def get(self, session_id: str) -> ViewState:
        """セッションの状態を取得（無ければ初期状態）"""
        with self.lock:
            return self._states.get(session_id) or ViewState()

    def set(self, session_id: str, state: ViewState) -> ViewState:
        with self.lock:
            self._states[session_id] = state
            return state

    def update(self, session_id: str, reducer: Callable[..., ViewState], *args, **kwargs) -> ViewState:
        """遷移関数を適用して保存"""
        with self.lock:
            return self.set(session_id, reducer(self.get(session_id), *args, **kwargs))

    def discard(self, session_id: Optional[str]):
        with self.lock:
            self._states.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._states)
