"""Hosting of running games: one GameSession per game code.

A session owns a controller, a lock that serializes every call into it,
and the background tick loop that drives spawning.
"""

import random
import string
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from flask import abort

from .controller import GameController, GameState
from .settings import GameSettings


def generate_game_code(existing, length=4):
    """Generate a unique, short game code."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in existing:
            return code


class GameSession:
    def __init__(self, code: str, controller: GameController):
        self.code = code
        self.controller = controller
        self.lock = threading.RLock()
        self.ticker_running = False
        self.closed = False
        self.last_active = time.monotonic()

    @property
    def finished(self) -> bool:
        return self.controller.state in (GameState.GAME_OVER, GameState.COMPLETED)

    def touch(self) -> None:
        self.last_active = time.monotonic()

    def call(self, func: Callable[..., Any], *args, **kwargs) -> Any:
        """Run a controller operation under the session lock."""
        with self.lock:
            return func(*args, **kwargs)

    def start_game(self) -> None:
        self.touch()
        self.call(self.controller.start_game)

    def tick(self):
        return self.call(self.controller.tick)

    def submit_answer(self, challenge_id: int, side: str, value: str) -> bool:
        self.touch()
        if side == 'binary':
            return self.call(self.controller.submit_binary_answer, challenge_id, value)
        if side == 'numeric':
            return self.call(self.controller.submit_numeric_answer, challenge_id, value)
        raise ValueError(f"side must be 'binary' or 'numeric', got {side!r}")

    def snapshot(self) -> Dict[str, Any]:
        self.touch()
        snap = self.call(self.controller.snapshot)
        snap['game_code'] = self.code
        return snap


class SessionRegistry:
    """In-memory registry of game sessions keyed by game code."""

    def __init__(self):
        self._sessions: Dict[str, GameSession] = {}
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._sessions)

    def __contains__(self, code):
        return code.upper() in self._sessions

    def create(self, app, on_created: Optional[Callable[[GameSession], None]] = None) -> GameSession:
        self.prune(app)
        settings = app.extensions.get('bintris.settings') or GameSettings.from_config(app.config)
        seed = app.config.get('RANDOM_SEED')
        rng = random.Random(seed) if seed is not None else random.Random()
        with self._lock:
            code = generate_game_code(self._sessions)
            session = GameSession(code, GameController(settings, rng=rng, logger=app.logger))
            self._sessions[code] = session
        if on_created is not None:
            on_created(session)
        app.logger.info(f"[session-create] game={code} seeded={seed is not None}")
        return session

    def get(self, code: str) -> Optional[GameSession]:
        if not code:
            return None
        return self._sessions.get(code.upper())

    def get_or_404(self, code: str) -> GameSession:
        session = self.get(code)
        if session is None:
            abort(404, description=f"Game {code} not found")
        return session

    def end(self, code: str) -> Optional[GameSession]:
        with self._lock:
            session = self._sessions.pop(code.upper(), None)
        if session is not None:
            session.closed = True
        return session

    def prune(self, app, now: Optional[float] = None) -> List[str]:
        """Drop sessions nobody has touched for SESSION_IDLE_SEC, and finished
        games left untouched for SESSION_FINISHED_SEC.
        """
        idle_sec = float(app.config.get('SESSION_IDLE_SEC', 1800))
        finished_sec = float(app.config.get('SESSION_FINISHED_SEC', 120))
        now = time.monotonic() if now is None else now
        dropped = []
        with self._lock:
            for code, session in list(self._sessions.items()):
                idle_for = now - session.last_active
                if idle_for > idle_sec or (session.finished and idle_for > finished_sec):
                    del self._sessions[code]
                    session.closed = True
                    dropped.append(code)
        if dropped:
            app.logger.info(f"[session-prune] games={','.join(dropped)}")
        return dropped

    def clear(self) -> None:
        with self._lock:
            for session in self._sessions.values():
                session.closed = True
            self._sessions.clear()


sessions = SessionRegistry()


def start_ticker(app, socketio, session: GameSession) -> None:
    """Start the background tick loop for a session.

    - No-ops in TESTING mode unless ENABLE_TICKER_IN_TESTS is set
    - Ensures a single loop per session
    - Stops when the session is closed or the game leaves the running state
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_TICKER_IN_TESTS'):
        return
    with session.lock:
        if session.ticker_running:
            app.logger.info(f"[ticker-skip] game={session.code} already running")
            return
        session.ticker_running = True

    interval = session.controller.settings.tick_ms / 1000.0
    heartbeat = int(app.config.get('TICK_HEARTBEAT_SEC', 0) or 0)

    def _worker():
        app.logger.info(f"[ticker-start] game={session.code} interval={interval}s")
        last_beat = time.time()
        try:
            while not session.closed and session.controller.playing:
                socketio.sleep(interval)
                if session.closed:
                    break
                session.tick()
                if heartbeat > 0 and time.time() - last_beat >= heartbeat:
                    last_beat = time.time()
                    ctrl = session.controller
                    app.logger.info(
                        f"[ticker-heartbeat] game={session.code} level={ctrl.level} "
                        f"on_screen={ctrl.count_on_screen} wait={ctrl.wait_time:.1f}"
                    )
        finally:
            with session.lock:
                session.ticker_running = False
            app.logger.info(f"[ticker-stop] game={session.code} state={session.controller.state.value}")
            sessions.prune(app)

    socketio.start_background_task(_worker)
