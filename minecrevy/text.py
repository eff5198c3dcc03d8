"""Chat text components and their JSON form."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple, Union

from minecrevy.args import StringArgs
from minecrevy.codecs import Codec, String
from minecrevy.stream import McReader, McWriter, ProtocolError

_I32_MIN = -(1 << 31)
_I32_MAX = (1 << 31) - 1

_STYLE_FLAGS = ("bold", "italic", "underlined", "strikethrough", "obfuscated")
_STYLE_STRINGS = ("font", "color", "insertion")


def _optional(data: Dict[str, Any], key: str, kind: type) -> Any:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, kind):
        raise ValueError(f"invalid type for {key!r}: expected {kind.__name__}")
    return value


def _list_field(data: Dict[str, Any], key: str) -> list:
    value = data.get(key, [])
    if not isinstance(value, list):
        raise ValueError(f"invalid type for {key!r}: expected a list")
    return value


def _require_dict(data: Any, what: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be a JSON object")
    return data


@dataclass(frozen=True)
class StringContent:
    """A plain string."""

    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text}


@dataclass(frozen=True)
class TranslatableContent:
    """A translation key with optional arguments."""

    key: str
    with_: Tuple["Text", ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "with_", tuple(self.with_))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"translate": self.key}
        if self.with_:
            out["with"] = [t.to_dict() for t in self.with_]
        return out


@dataclass(frozen=True)
class KeybindContent:
    """The key bound to a control."""

    keybind: str

    def to_dict(self) -> Dict[str, Any]:
        return {"keybind": self.keybind}


TextContent = Union[StringContent, TranslatableContent, KeybindContent]


def _content_from_dict(data: Dict[str, Any]) -> TextContent:
    if isinstance(data.get("text"), str):
        return StringContent(data["text"])
    if isinstance(data.get("translate"), str):
        args = tuple(Text.from_dict(item) for item in _list_field(data, "with"))
        return TranslatableContent(data["translate"], args)
    if isinstance(data.get("keybind"), str):
        return KeybindContent(data["keybind"])
    raise ValueError("data did not match any variant of text content")


class ClickAction(enum.Enum):
    """What happens when a text component is clicked."""

    OPEN_URL = "open_url"
    RUN_COMMAND = "run_command"
    SUGGEST_COMMAND = "suggest_command"
    CHANGE_PAGE = "change_page"
    COPY_TO_CLIPBOARD = "copy_to_clipboard"


@dataclass(frozen=True)
class ClickEvent:
    """An action run on click; ``value`` is a page number for CHANGE_PAGE, else a string."""

    action: ClickAction
    value: Union[str, int]

    def __post_init__(self) -> None:
        if self.action is ClickAction.CHANGE_PAGE:
            if not isinstance(self.value, int) or isinstance(self.value, bool):
                raise ValueError("change_page needs an integer page")
            if not _I32_MIN <= self.value <= _I32_MAX:
                raise ValueError(f"page out of range: {self.value}")
        elif not isinstance(self.value, str):
            raise ValueError(f"{self.action.value} needs a string value")

    @classmethod
    def open_url(cls, url: str) -> ClickEvent:
        return cls(ClickAction.OPEN_URL, url)

    @classmethod
    def run_command(cls, command: str) -> ClickEvent:
        return cls(ClickAction.RUN_COMMAND, command)

    @classmethod
    def suggest_command(cls, command: str) -> ClickEvent:
        return cls(ClickAction.SUGGEST_COMMAND, command)

    @classmethod
    def change_page(cls, page: int) -> ClickEvent:
        return cls(ClickAction.CHANGE_PAGE, page)

    @classmethod
    def copy_to_clipboard(cls, text: str) -> ClickEvent:
        return cls(ClickAction.COPY_TO_CLIPBOARD, text)

    def to_dict(self) -> Dict[str, Any]:
        return {"action": self.action.value, "value": self.value}

    @classmethod
    def from_dict(cls, data: Any) -> ClickEvent:
        data = _require_dict(data, "click event")
        try:
            action = ClickAction(data.get("action"))
        except ValueError:
            raise ValueError(f"unknown click action: {data.get('action')!r}") from None
        if "value" not in data:
            raise ValueError("click event has no value")
        return cls(action, data["value"])


@dataclass(frozen=True)
class HoverEvent:
    """Shows a text component when hovered."""

    text: Text

    @classmethod
    def show_text(cls, text: Union[Text, str]) -> HoverEvent:
        if isinstance(text, str):
            text = Text.string(text)
        return cls(text)

    def to_dict(self) -> Dict[str, Any]:
        return {"action": "show_text", "value": self.text.to_dict()}

    @classmethod
    def from_dict(cls, data: Any) -> HoverEvent:
        data = _require_dict(data, "hover event")
        if data.get("action") != "show_text":
            raise ValueError(f"unknown hover action: {data.get('action')!r}")
        if "value" not in data:
            raise ValueError("hover event has no value")
        return cls(Text.from_dict(data["value"]))


@dataclass(frozen=True)
class TextStyle:
    """Formatting of a text component; ``None`` leaves a property unset."""

    bold: Optional[bool] = None
    italic: Optional[bool] = None
    underlined: Optional[bool] = None
    strikethrough: Optional[bool] = None
    obfuscated: Optional[bool] = None
    font: Optional[str] = None
    color: Optional[str] = None
    insertion: Optional[str] = None
    click: Optional[ClickEvent] = None
    hover: Optional[HoverEvent] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for name in _STYLE_FLAGS + _STYLE_STRINGS:
            value = getattr(self, name)
            if value is not None:
                out[name] = value
        if self.click is not None:
            out["click"] = self.click.to_dict()
        if self.hover is not None:
            out["hover"] = self.hover.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: Any) -> TextStyle:
        data = _require_dict(data, "text style")
        kwargs: Dict[str, Any] = {name: _optional(data, name, bool) for name in _STYLE_FLAGS}
        kwargs.update({name: _optional(data, name, str) for name in _STYLE_STRINGS})
        if data.get("click") is not None:
            kwargs["click"] = ClickEvent.from_dict(data["click"])
        if data.get("hover") is not None:
            kwargs["hover"] = HoverEvent.from_dict(data["hover"])
        return cls(**kwargs)


@dataclass(frozen=True)
class Text:
    """A text component: content, style and child components.

    Builder methods return a new component and leave this one unchanged.
    """

    content: TextContent
    style: TextStyle = field(default_factory=TextStyle)
    extra: Tuple[Text, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "extra", tuple(self.extra))

    @classmethod
    def string(cls, text: str) -> Text:
        return cls(StringContent(text))

    @classmethod
    def empty(cls) -> Text:
        return cls.string("")

    @classmethod
    def space(cls) -> Text:
        return cls.string(" ")

    @classmethod
    def newline(cls) -> Text:
        return cls.string("\n")

    def _restyle(self, **changes: Any) -> Text:
        return replace(self, style=replace(self.style, **changes))

    def bold(self) -> Text:
        return self._restyle(bold=True)

    def italic(self) -> Text:
        return self._restyle(italic=True)

    def underlined(self) -> Text:
        return self._restyle(underlined=True)

    def strikethrough(self) -> Text:
        return self._restyle(strikethrough=True)

    def obfuscated(self) -> Text:
        return self._restyle(obfuscated=True)

    def font(self, font: str) -> Text:
        return self._restyle(font=font)

    def insertion(self, insertion: str) -> Text:
        return self._restyle(insertion=insertion)

    def click(self, event: ClickEvent) -> Text:
        return self._restyle(click=event)

    def hover(self, event: Union[HoverEvent, Text]) -> Text:
        if isinstance(event, Text):
            event = HoverEvent.show_text(event)
        return self._restyle(hover=event)

    def to_dict(self) -> Dict[str, Any]:
        out = self.content.to_dict()
        out.update(self.style.to_dict())
        if self.extra:
            out["extra"] = [child.to_dict() for child in self.extra]
        return out

    @classmethod
    def from_dict(cls, data: Any) -> Text:
        data = _require_dict(data, "text component")
        extra = tuple(cls.from_dict(item) for item in _list_field(data, "extra"))
        return cls(_content_from_dict(data), TextStyle.from_dict(data), extra)

    def to_json(self) -> str:
        """Return the compact JSON form of this component."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> Text:
        """Parse a component from JSON; raises ValueError on malformed input."""
        return cls.from_dict(json.loads(data))


@dataclass(frozen=True)
class TextArgs:
    """Arguments for reading and writing text components."""

    max_len: Optional[int] = 262144
    """Maximum JSON length in bytes; ``None`` disables the check."""


class TextCodec(Codec):
    """A text component carried as a length-prefixed JSON string."""

    def __init__(self, args: Optional[TextArgs] = None) -> None:
        self.args = args if args is not None else TextArgs()
        self._string = String(StringArgs(max_len=self.args.max_len))

    def read(self, reader: McReader) -> Text:
        raw = self._string.read(reader)
        try:
            return Text.from_json(raw)
        except ValueError as exc:
            raise ProtocolError(f"invalid text component: {exc}") from exc

    def write(self, writer: McWriter, value: Text) -> None:
        self._string.write(writer, value.to_json())