from __future__ import annotations

import logging
import random
import re
import threading
from dataclasses import dataclass

from cosmic_split.generator.base import Generator, GeneratorCancelled, GeneratorError, call_generator
from cosmic_split.generator.prompts import build_attribute_naming_prompt, build_group_naming_prompt
from cosmic_split.logging.error_log import ErrorLogBuffer

from .field_synthesis import split_attributes

"""Replacement names for colliding data groups and attribute fields.

``NameGenerator`` asks the external generator for one short replacement and falls back
to a local heuristic whenever that is not configured or fails. The heuristic extracts
an action word and a content word from the sub-process description using a fixed,
ordered vocabulary. Verbs outside the vocabulary yield the generic prefix fallback;
this is a keyword heuristic, not language understanding.
"""

__all__ = [
    "ACTION_VOCABULARY",
    "CATEGORY_SUFFIXES",
    "DEFAULT_ATTRIBUTE_SUFFIXES",
    "MAX_NAME_LENGTH",
    "Keywords",
    "extract_keywords",
    "group_keyword",
    "local_group_name",
    "local_attribute_field",
    "clean_generated_name",
    "NameGenerator",
]

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 20

# Ordered: the first keyword contained in the description wins
ACTION_VOCABULARY: tuple[tuple[str, str], ...] = (
    ("查询", "read"),
    ("读取", "read"),
    ("写入", "write"),
    ("删除", "delete"),
    ("更新", "modify"),
    ("新增", "create"),
    ("修改", "modify"),
    ("获取", "read"),
    ("提交", "write"),
    ("保存", "write"),
    ("导出", "transfer"),
    ("导入", "transfer"),
    ("分析", "analyze"),
    ("统计", "analyze"),
    ("处理", "process"),
    ("审核", "review"),
    ("验证", "review"),
    ("确认", "review"),
    ("接收", "transfer"),
    ("返回", "transfer"),
    ("初始化", "create"),
    ("生成", "create"),
    ("模拟", "analyze"),
)

ACTION_WORDS = tuple(word for word, _ in ACTION_VOCABULARY)

DEFAULT_ATTRIBUTE_SUFFIXES = ("标识", "编号", "类型", "参数", "版本", "状态", "配置", "属性", "字段", "值")

CATEGORY_SUFFIXES: dict[str, tuple[str, ...]] = {
    "read": ("标识", "编号", "类型", "版本"),
    "write": ("版本", "状态", "字段", "值"),
    "delete": ("标识", "状态", "原因"),
    "modify": ("版本", "状态", "配置"),
    "create": ("编号", "类型", "配置", "参数"),
    "transfer": ("参数", "格式", "字段"),
    "analyze": ("指标", "结果", "维度"),
    "process": ("状态", "结果", "参数"),
    "review": ("意见", "状态", "结果"),
}

GROUP_FALLBACK_SUFFIX = "扩展表"
GROUP_SUFFIX = "表"
GENERIC_PREFIX = "扩展"

_DIGITS = re.compile(r"\d")
_PUNCTUATION = re.compile(r"[，。、《》（）()？：；\-·,.:;?]")
_GROUP_FILLER = re.compile(r"[数据表信息记录·]")
_GENERATED_JUNK = re.compile(r"[\"'“”‘’\r\n]")


@dataclass(frozen=True)
class Keywords:
    """Action / content words pulled out of a sub-process description."""
    action: str = ""
    noun: str = ""
    category: str = ""
    tokens: tuple[str, ...] = ()


def _clean_description(description: str | None) -> str:
    text = _DIGITS.sub("", description or "")
    return _PUNCTUATION.sub(" ", text).strip()


def extract_keywords(description: str | None) -> Keywords:
    """Pick the first vocabulary action and the first content token of a description.

    The content word has the action stripped out of it, so "删除用户记录" yields the
    action "删除" and the noun "用户记录".
    """
    cleaned = _clean_description(description)
    action = ""
    category = ""
    for word, word_category in ACTION_VOCABULARY:
        if word in cleaned:
            action, category = word, word_category
            break

    tokens = tuple(cleaned.split())
    noun = ""
    for token in tokens:
        if len(token) < 2 or token in ACTION_WORDS:
            continue
        stripped = token.replace(action, "") if action else token
        noun = stripped if len(stripped) >= 2 else token
        break
    return Keywords(action=action, noun=noun, category=category, tokens=tokens)


def group_keyword(data_group: str | None) -> str:
    """Distinctive head of a data-group name with filler characters removed."""
    return _GROUP_FILLER.sub("", data_group or "")[:4]


def local_group_name(original: str, description: str | None) -> str:
    """Data-group replacement built from the original name and the description."""
    if not _clean_description(description):
        return original + GROUP_FALLBACK_SUFFIX
    keywords = extract_keywords(description)
    if keywords.action and keywords.noun:
        return original + keywords.action + keywords.noun
    if keywords.action:
        return original + keywords.action + GROUP_SUFFIX
    if keywords.noun:
        return original + keywords.noun + GROUP_SUFFIX
    prefix = "".join(token[:3] for token in keywords.tokens[:2])
    return original + (prefix or GENERIC_PREFIX) + GROUP_SUFFIX


def local_attribute_field(
    original_attributes: str,
    description: str | None,
    data_group: str | None,
    rng: random.Random,
) -> str:
    """One new attribute field name for a colliding attribute list.

    The suffix is drawn with ``rng`` from the set that belongs to the action's
    category, or from the default set when no action was recognised.
    """
    keywords = extract_keywords(description)
    fields = split_attributes(original_attributes)
    head = fields[0][:4] if fields else ""
    group_kw = group_keyword(data_group)
    suffix = rng.choice(CATEGORY_SUFFIXES.get(keywords.category, DEFAULT_ATTRIBUTE_SUFFIXES))

    if keywords.action and group_kw:
        return keywords.action + group_kw + suffix
    if keywords.action:
        return keywords.action + head + suffix
    if group_kw:
        return group_kw + head + suffix
    prefix = "".join(token[:2] for token in keywords.tokens[:2])
    return (prefix or GENERIC_PREFIX) + head + suffix


def clean_generated_name(text: str | None) -> str:
    """Strip quotes and line breaks from a generated name and cap its length."""
    return _GENERATED_JUNK.sub("", (text or "").strip()).strip()[:MAX_NAME_LENGTH]


class NameGenerator:
    """Produces replacement names, preferring the external generator.

    Any failure of the generator call (error, timeout, blank or unusable reply) is
    logged, recorded as NAMING_FALLBACK, and answered by the local heuristic.
    Cancellation is not a naming failure and propagates to the caller.
    """

    def __init__(
        self,
        generator: Generator | None = None,
        *,
        model_hint: str = "",
        rng: random.Random | None = None,
        existing_sample: int = 5,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self.generator = generator
        self.model_hint = model_hint
        self.rng = rng or random.Random()
        self.existing_sample = existing_sample
        self.timeout = timeout
        self.cancel_event = cancel_event
        self.error_log = error_log
        self.round_number = 0
        self.generator_calls = 0
        self.fallbacks = 0

    def group_name(
        self,
        original: str,
        description: str,
        process: str,
        existing_names: list[str],
    ) -> str:
        if self.generator is not None:
            prompt = build_group_naming_prompt(
                original, description, process, existing_names[: self.existing_sample]
            )
            name = self._ask(prompt, f"data group '{original}'")
            if name:
                return name
        return local_group_name(original, description)

    def attribute_field(
        self,
        original_attributes: str,
        description: str,
        process: str,
        data_group: str,
        existing_names: list[str],
    ) -> str:
        if self.generator is not None:
            prompt = build_attribute_naming_prompt(
                original_attributes,
                description,
                process,
                data_group,
                existing_names[: self.existing_sample],
            )
            name = self._ask(prompt, f"attributes '{original_attributes}'")
            if name:
                return name
        return local_attribute_field(original_attributes, description, data_group, self.rng)

    def _ask(self, prompt: str, subject: str) -> str | None:
        self.generator_calls += 1
        try:
            reply = call_generator(
                self.generator,
                prompt,
                self.model_hint,
                timeout=self.timeout,
                cancel_event=self.cancel_event,
            )
        except GeneratorCancelled:
            raise
        except GeneratorError as e:
            self._fallback(subject, str(e))
            return None
        name = clean_generated_name(reply)
        if not name:
            self._fallback(subject, "generator reply was not a usable name")
            return None
        return name

    def _fallback(self, subject: str, reason: str) -> None:
        self.fallbacks += 1
        logger.warning("Naming for %s fell back to local heuristic: %s", subject, reason)
        if self.error_log is not None:
            self.error_log.record(self.round_number, -1, "NAMING_FALLBACK", f"{subject}: {reason}")
