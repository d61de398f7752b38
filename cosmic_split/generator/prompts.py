from __future__ import annotations

"""Prompt texts sent to the generator.

Batch prompts ask for a seven-column pipe table in which the process columns are only
filled on the Entry (E) row of each functional process. Later rounds quote a capped
sample of already-completed process names and ask for the completion marker once
nothing is left. Naming prompts ask for one short replacement name.
"""

__all__ = [
    "SYSTEM_PROMPT",
    "COMPLETION_MARKER",
    "COMPLETION_PHRASES",
    "TABLE_HEADER",
    "build_round_prompt",
    "build_group_naming_prompt",
    "build_attribute_naming_prompt",
    "is_completion_signal",
]

COMPLETION_MARKER = "[ALL_DONE]"
COMPLETION_PHRASES = ("已完成", "全部拆分")

TABLE_HEADER = "|功能用户|触发事件|功能过程|子过程描述|数据移动类型|数据组|数据属性|"
TABLE_SEPARATOR = "|:---|:---|:---|:---|:---|:---|:---|"

SYSTEM_PROMPT = f"""你是COSMIC功能规模度量拆分专家。请把需求文档中的功能拆分为功能过程，每个功能过程由多个子过程组成。

数据移动类型只能是以下四种之一：
- E：输入（触发请求）
- R：读取（读取持久化数据）
- W：写入（写入持久化数据）
- X：输出（返回结果）

输出规则：
1. 每个功能过程包含 3 到 5 个子过程：第一行是 E，中间是 R/W，最后一行是 X。
2. 功能用户、触发事件、功能过程三列只在 E 行填写，其余子过程行这三列留空。
3. 功能过程名称采用“动词+名词”形式，且互不重复。
4. 每个子过程都要填写数据组和数据属性；数据组名称不得包含连字符“-”；数据属性至少 3 个字段。

示例：
{TABLE_HEADER}
{TABLE_SEPARATOR}
|用户触发|用户请求|删除设备孪生体|接收删除请求|E|删除请求参数|孪生体ID、删除理由、删除人|
||||读取孪生体信息|R|设备孪生体详情表|孪生体ID、设备名称、创建时间|
||||删除孪生体记录|W|设备孪生体删除数据|孪生体ID、删除时间、删除人|
||||返回删除结果|X|删除结果响应|孪生体ID、状态、消息、删除时间|
"""


def build_round_prompt(
    document_text: str,
    round_number: int,
    target_processes: int,
    completed_names: list[str] | None = None,
    sample_size: int = 30,
) -> str:
    """Full prompt for one batch request (format instructions + document).

    The first round carries only the document; later rounds also list up to
    ``sample_size`` completed process names so the generator continues elsewhere.
    """
    if round_number <= 1:
        body = (
            f"以下是功能文档内容：\n\n{document_text}\n\n"
            "请对文档中的功能进行COSMIC拆分，输出Markdown表格。\n"
            "功能过程名称只在E行填写，后续子过程行的功能过程列留空。\n"
            "每个功能过程名称必须唯一，并尽量细化到具体业务场景（操作类型、时间维度、对象类型等）。\n"
            f"尽可能多地识别功能过程，至少识别 {target_processes} 个。"
        )
        return f"{SYSTEM_PROMPT}\n{body}"

    names = completed_names or []
    sample = "、".join(names[:sample_size])
    if len(names) > sample_size:
        sample += "..."
    body = (
        f"以下是功能文档内容：\n\n{document_text}\n\n"
        f"继续分析文档中尚未拆分的功能过程（第 {round_number} 轮）。\n\n"
        f"已完成的功能过程（{len(names)}个）：\n{sample}\n\n"
        f"目标是最终至少覆盖 {target_processes} 个功能过程。\n"
        "新的功能过程绝对不能与上面已完成的重复，功能过程名称只在E行填写。\n"
        "请继续输出Markdown表格。\n"
        f"如果所有功能都已拆分完成，请回复\"{COMPLETION_MARKER}\"。"
    )
    return f"{SYSTEM_PROMPT}\n{body}"


def build_group_naming_prompt(
    original_name: str,
    description: str,
    process: str,
    existing_names: list[str],
) -> str:
    existing = ", ".join(existing_names)
    return (
        f"数据组名称\"{original_name}\"与已有名称重复。\n\n"
        f"上下文：\n- 功能过程：{process}\n- 子过程描述：{description}\n"
        f"- 已存在的类似名称：{existing}\n\n"
        "请结合子过程的业务动作或对象，生成一个新的完整名称。\n"
        "要求：不使用括号；只输出名称本身；不超过15个字。\n"
        "示例：原名称\"用户信息\"，子过程\"删除用户记录\" -> 用户信息删除表"
    )


def build_attribute_naming_prompt(
    original_attributes: str,
    description: str,
    process: str,
    data_group: str,
    existing_names: list[str],
) -> str:
    existing = ", ".join(existing_names)
    return (
        f"数据属性\"{original_attributes}\"与已有数据属性重复。\n\n"
        f"上下文：\n- 功能过程：{process}\n- 子过程描述：{description}\n"
        f"- 所属数据组：{data_group}\n- 已存在的类似名称：{existing}\n\n"
        "请生成一个新的数据属性字段名，体现具体特征（如标识、类型、参数、版本、状态等）。\n"
        "要求：不使用括号；只输出字段名本身；不超过15个字。\n"
        "示例：子过程\"查询模型信息\"，数据组\"模型数据\" -> 查询模型标识"
    )


def is_completion_signal(reply: str) -> bool:
    """True when the reply says there is nothing left to split."""
    text = reply or ""
    return COMPLETION_MARKER in text or any(phrase in text for phrase in COMPLETION_PHRASES)
