import asyncio
import random

import pytest

from quizzer.question_bank import QuestionBank
from quizzer.runtime import ConnectionHub
from quizzer.runtime_registry import RoomRegistry
from quizzer.runtime_types import ClientConnection, Game, Question, QuizOption


class MockWebSocket:
    """Records every frame the hub sends."""

    def __init__(self):
        self.sent_messages: list[dict] = []
        self.closed = False

    async def send_json(self, data: dict):
        self.sent_messages.append(data)

    async def close(self, code: int = 1000):
        self.closed = True

    def last(self, msg_type: str) -> dict | None:
        for msg in reversed(self.sent_messages):
            if msg.get("type") == msg_type:
                return msg
        return None

    def all(self, msg_type: str) -> list[dict]:
        return [m for m in self.sent_messages if m.get("type") == msg_type]

    def types(self) -> list[str]:
        return [m.get("type") for m in self.sent_messages]


class BrokenWebSocket(MockWebSocket):
    async def send_json(self, data: dict):
        raise RuntimeError("socket is closed")


def make_options(*ids: str) -> list[QuizOption]:
    return [QuizOption(id=option_id, text=option_id.upper()) for option_id in ids]


def make_flags_game(num_questions: int = 3) -> Game:
    ids = ["fr", "de", "it", "es", "pt", "nl"]
    return Game(
        id="flags",
        title="Flags",
        image="/flags.png",
        type="multiple-choice",
        questions=[
            Question(id=i + 1, question=f"/flags/{ids[i]}.svg", type="flag", answer=ids[i])
            for i in range(num_questions)
        ],
        options=make_options(*ids),
    )


def make_capitals_game() -> Game:
    return Game(
        id="capitals",
        title="Capitals",
        image="/capitals.png",
        type="autocomplete",
        questions=[
            Question(id=1, question="France", type="capital", answer="paris"),
            Question(id=2, question="Italy", type="capital", answer="rome"),
        ],
        options=make_options("paris", "rome", "berlin", "madrid", "vienna"),
        placeholder="Type a capital",
    )


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def question_bank():
    return QuestionBank([make_flags_game(), make_capitals_game()])


@pytest.fixture
def registry(question_bank, rng):
    return RoomRegistry(question_bank, rng=rng, clock=lambda: 1_700_000_000_000)


@pytest.fixture
def make_hub(registry):
    def factory(tick_ms=10, reveal_pause_ms=20, send_timeout_ms=200):
        return ConnectionHub(
            registry,
            tick_ms=tick_ms,
            reveal_pause_ms=reveal_pause_ms,
            send_timeout_ms=send_timeout_ms,
        )

    return factory


def connect():
    ws = MockWebSocket()
    return ClientConnection(websocket=ws), ws


async def wait_for_message(ws: MockWebSocket, msg_type: str, timeout: float = 2.0, count: int = 1) -> dict:
    deadline = asyncio.get_running_loop().time() + timeout
    while len(ws.all(msg_type)) < count:
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError(f"timed out waiting for {msg_type}; got {ws.types()}")
        await asyncio.sleep(0.005)
    return ws.all(msg_type)[count - 1]
