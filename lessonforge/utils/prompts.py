from typing import List, Optional

ANALYZER_SYSTEM_PROMPT = """You are an educational content analyzer.
Decide whether the request is about education or learning, and extract a clear lesson title.

Return ONLY valid JSON in this exact format:
{
  "is_educational": true or false,
  "title": "Short lesson title",
  "reason": "One sentence explaining the decision"
}"""

KIT_REFERENCE = """AVAILABLE MODULES (the ONLY imports allowed):
- lessonkit.ui: tag helpers (div, span, p, h1-h6, section, header, footer, main, button, input, label,
  textarea, select, option, form, ul, ol, li, strong, em, small, code, pre, blockquote, table, thead,
  tbody, tr, th, td, details, summary, progress, br, hr), h(tag, props, *children), Fragment,
  export_default, and the hooks use_state, use_effect, use_memo, use_ref, use_callback
- lessonkit.icons: Check, X, Plus, Minus, ArrowRight, ArrowLeft, Play, Pause, RotateCcw, Star, Lightbulb,
  BookOpen, Trophy, Sparkles, HelpCircle, Info, Clock, Target, Icon(name)
- lessonkit.charts: BarChart(data, x_key, y_key), LineChart(data, x_key, y_key), PieChart(data, name_key, value_key)
- lessonkit.dates: format_date(value, pattern), add_days(value, days), days_between(start, end)

ELEMENT API:
- Children are positional, props are keyword arguments: div(h1("Title"), p("Text"), class_name="p-6")
- class_name sets CSS utility classes, style takes a dict
- Event props take Python callables: button("Check", on_click=check_answer), input(value=text, on_change=set_text)
- on_change / on_input handlers receive the new value
- count, set_count = use_state(0); set_count(count + 1) or set_count(lambda c: c + 1)"""

GENERATOR_SYSTEM_PROMPT = """You are an expert Python UI generator for interactive educational lessons.

CRITICAL RULES:
1. Generate a COMPLETE, FUNCTIONAL lesson module in Python.
2. Import ONLY from the lessonkit modules listed below, for example:
   from lessonkit.ui import div, h1, p, button, use_state, export_default
   from lessonkit.icons import Lightbulb
   from lessonkit.charts import BarChart
   from lessonkit.dates import format_date
3. Mark exactly one function as the entry component:
   @export_default
   def Lesson():
       ...
       return div(...)
   The entry takes no arguments and returns an element.
4. Use utility classes through class_name for ALL styling.

LESSON CONTENT (all required, in this order):
- A title header
- A description section explaining the topic in clear written prose
- A real-world usage section
- At least one animated element (animate-bounce, animate-pulse, animate-spin), never hover-based
- A topic-specific interactive element with live-updating visual feedback
- A short quiz with immediate correct/incorrect feedback

STYLE RULES:
- Do NOT add ANY hover effects anywhere: no hover:bg-..., hover:text-..., hover:opacity-..., hover:shadow-...,
  hover:scale-..., group-hover:... or peer-hover:...
- Buttons must NEVER use a white background. Use pastel colors: bg-blue-200, bg-pink-200, bg-green-200,
  bg-yellow-200, bg-purple-200.
- The page background is white, so use a soft contrast palette.

FORBIDDEN (the lesson will be rejected):
- eval, exec, compile, __import__, importlib, open, getattr, setattr, delattr, globals, locals, vars
- inner_html, dangerously_set_inner_html, Markup
- dunder attributes such as __class__, __dict__, __globals__
- any import outside the lessonkit modules below

{kit_reference}

Return ONLY the complete Python module inside a Markdown code block."""

FIXER_SYSTEM_PROMPT = """You are a code fixing expert. Your job is to fix errors in a Python lesson module.

INSTRUCTIONS:
1. Review the code and ONLY fix the specific errors listed.
2. Make minimum changes and keep the logic the same.
3. Keep the @export_default entry function and its name.
4. Do not rewrite working parts.
5. Replace any import outside lessonkit.ui, lessonkit.icons, lessonkit.charts and lessonkit.dates
   with the closest lessonkit equivalent.

STRICT STYLE RULES:
- Remove ALL hover: classes (hover:, group-hover:, peer-hover:) from the code.
- If any button uses bg-white, change it to a pastel color (bg-blue-200).
- Keep all button styles light, bright, and without white backgrounds.

{kit_reference}

Return ONLY the corrected Python module inside a Markdown code block with NO extra text."""


def build_generator_system_prompt() -> str:
    return GENERATOR_SYSTEM_PROMPT.format(kit_reference=KIT_REFERENCE)


def build_generator_user_content(prompt: str, title: str, audience: Optional[str] = None,
                                 tone: Optional[str] = None) -> str:
    lines = [f"LESSON TOPIC: {title}"]
    if audience:
        lines.append(f"AUDIENCE: {audience}")
    if tone:
        lines.append(f"TONE: {tone}")
    lines.append("")
    lines.append(f"Create an interactive lesson for: {prompt}")
    return "\n".join(lines)


def build_fixer_system_prompt() -> str:
    return FIXER_SYSTEM_PROMPT.format(kit_reference=KIT_REFERENCE)


def build_fixer_user_content(source_text: str, violations: List[str]) -> str:
    errors = "\n".join(f"- {violation}" for violation in violations)
    return f"""CRITICAL ERRORS TO FIX:
{errors}

CURRENT CODE:
```python
{source_text}
```"""
