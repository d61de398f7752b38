# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from cosmic_split.logging.init import reset_logging
from cosmic_split.models.config_models import AppConfig, GeneratorConfig, SessionConfig

HEADER = "|功能用户|触发事件|功能过程|子过程描述|数据移动类型|数据组|数据属性|\n|:---|:---|:---|:---|:---|:---|:---|\n"


def make_process(name: str, tag: str) -> str:
    """Four table lines (E/R/W/X) for one functional process with unique names."""
    return (
        f"|用户|用户请求|{name}|接收{tag}请求|E|{tag}请求参数|{tag}编号, {tag}名称, 请求时间|\n"
        f"||||读取{tag}信息|R|{tag}详情表|{tag}编号, {tag}状态, 创建时间|\n"
        f"||||写入{tag}记录|W|{tag}变更记录|{tag}编号, 变更内容, 变更时间|\n"
        f"||||返回{tag}结果|X|{tag}结果响应|{tag}编号, 结果状态, 返回消息|\n"
    )


def make_reply(*processes: tuple[str, str], preface: str = "以下是拆分结果：\n\n", trailer: str = "") -> str:
    return preface + HEADER + "".join(make_process(name, tag) for name, tag in processes) + trailer


class StubGenerator:
    """Scripted generator: batch prompts get the next reply, naming prompts get ``naming_reply``.

    A reply that is an Exception instance is raised instead of returned.
    """

    def __init__(self, replies: list[str | Exception], naming_reply: str | Exception = "") -> None:
        self.replies = list(replies)
        self.naming_reply = naming_reply
        self.batch_prompts: list[str] = []
        self.naming_prompts: list[str] = []
        self.model_hints: list[str] = []

    def generate(self, prompt: str, model_hint: str) -> str:
        self.model_hints.append(model_hint)
        if "重复" in prompt and "以下是功能文档内容" not in prompt:
            self.naming_prompts.append(prompt)
            reply = self.naming_reply
        else:
            self.batch_prompts.append(prompt)
            reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, Exception):
            raise reply
        return reply

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _fresh_logging() -> Iterator[None]:
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Iterator[Path]:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "docs").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """generator:
  model: test-model
  naming_model: test-naming-model
  temperature: 0.5
  max_tokens: 2000
  timeout_seconds: 30
session:
  target_processes: 5
  max_rounds: 12
  round_delay_seconds: 0
  completed_sample_size: 30
  existing_names_sample: 5
  shuffle_seed: 7
  use_generator_for_naming: false
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "cosmic.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def app_config() -> AppConfig:
    return AppConfig(
        generator=GeneratorConfig(model="test-model", naming_model="test-naming-model", timeout_seconds=5.0),
        session=SessionConfig(target_processes=5, round_delay_seconds=0, shuffle_seed=7, use_generator_for_naming=False),
    )


@pytest.fixture()
def reply_factory() -> Callable[..., str]:
    return make_reply


@pytest.fixture()
def stub_generator_cls() -> type[StubGenerator]:
    return StubGenerator
