"""Structural extractor - source text to ClassModel list.

No grammar, no AST: the file is tokenized by ``lexer`` (comments and
literal contents already gone) and a brace-depth state machine walks
the tokens. Every ``{`` opened at a member scope (file, namespace or
type body) is classified from the declaration header that precedes it:
namespace, type, method, property, initializer or opaque block. Method
bodies are handed to ``complexity`` when their closing brace is seen.

Per-file output is independent of every other file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .complexity import analyze_body
from .errors import ParseError
from .lexer import CSHARP, JAVA, Token, tokenize
from .models import (
    ClassModel,
    FieldModel,
    MethodModel,
    ParameterModel,
    PropertyModel,
    SourceFile,
)

TYPE_KEYWORDS = frozenset({"class", "interface", "struct", "record", "enum"})

VISIBILITY_KEYWORDS = frozenset({"public", "private", "protected", "internal"})

MODIFIERS = VISIBILITY_KEYWORDS | frozenset({
    "static", "abstract", "sealed", "partial", "virtual", "override", "async",
    "readonly", "const", "extern", "unsafe", "volatile", "new", "required",
    "file", "fixed", "implicit", "explicit",
    # Java
    "final", "synchronized", "native", "transient", "strictfp", "default",
    "non-sealed",
})

PARAMETER_MODIFIERS = frozenset({"this", "ref", "out", "in", "params", "final", "scoped", "readonly"})

# Identifiers that can sit right before ``(`` in a header without naming a method
NON_NAME_KEYWORDS = MODIFIERS | frozenset({
    "new", "base", "this", "where", "return", "typeof", "nameof", "sizeof",
    "default", "if", "switch", "while", "for", "foreach", "catch", "using",
    "lock", "throw", "await", "void", "super", "throws",
})

ACCESSOR_KEYWORDS = frozenset({"get", "set", "init", "add", "remove"})

_OPEN_CLOSE = {"(": ")", "[": "]", "{": "}", "<": ">"}

# Frame kinds whose direct children are declarations
_MEMBER_SCOPES = frozenset({"file", "namespace", "type"})


@dataclass
class _TypeBuilder:
    name: str
    kind: str
    offset: int
    line: int
    namespace: str
    container: str
    base_types: list[str] = field(default_factory=list)
    attributes: list[str] = field(default_factory=list)
    modifiers: list[str] = field(default_factory=list)
    primary_parameters: list[ParameterModel] = field(default_factory=list)
    methods: list[MethodModel] = field(default_factory=list)
    properties: list[PropertyModel] = field(default_factory=list)
    fields: list[FieldModel] = field(default_factory=list)

    @property
    def qualified_container(self) -> str:
        return f"{self.container}.{self.name}" if self.container else self.name


@dataclass
class _Frame:
    kind: str  # file, namespace, type, method, property, init, opaque, block
    open_index: int
    builder: _TypeBuilder | None = None
    namespace: str = ""
    # Pending method/property header, as token indices [start, end)
    header: tuple[int, int] | None = None
    attributes: list[str] = field(default_factory=list)


def join_tokens(tokens: Sequence[Token]) -> str:
    """Render tokens back to compact source text (``List<int>``, ``int[]``)."""
    out: list[str] = []
    prev: Token | None = None
    for tok in tokens:
        if prev is not None:
            if prev.kind in ("ident", "number") and tok.kind in ("ident", "number"):
                out.append(" ")
            elif prev.value == ",":
                out.append(" ")
        out.append(tok.value)
        prev = tok
    return "".join(out)


class StructuralExtractor:
    """Extracts the type declarations of one source file."""

    def __init__(self, source: SourceFile):
        self.source = source
        self.dialect = source.dialect
        self.tokens = tokenize(source.text, source.dialect)
        self.imports: list[str] = []
        self.file_namespace = ""
        self._builders: list[_TypeBuilder] = []

    # --- main loop ---

    def extract(self) -> list[ClassModel]:
        toks = self.tokens
        stack: list[_Frame] = [_Frame("file", -1)]
        header_start = 0

        for i, tok in enumerate(toks):
            if tok.kind != "op":
                continue
            v = tok.value
            frame = stack[-1]

            if v == "{":
                if frame.kind in _MEMBER_SCOPES:
                    new = self._open_member(header_start, i, stack)
                else:
                    new = _Frame("block", i)
                stack.append(new)
                if new.kind in _MEMBER_SCOPES:
                    header_start = i + 1
            elif v == "}":
                if len(stack) == 1:
                    raise ParseError("unbalanced closing brace", tok.line)
                closed = stack.pop()
                self._close(closed, i, stack)
                # Braces inside an initializer belong to the pending declaration
                if closed.kind != "init" and stack[-1].kind in _MEMBER_SCOPES:
                    header_start = i + 1
            elif v == ";" and frame.kind in _MEMBER_SCOPES:
                self._end_statement(header_start, i, stack)
                header_start = i + 1

        if len(stack) > 1:
            opened = toks[stack[-1].open_index]
            raise ParseError(f"unbalanced braces: {len(stack) - 1} unclosed", opened.line)

        imports = tuple(self.imports)
        self._builders.sort(key=lambda b: b.offset)
        return [
            ClassModel(
                name=b.name,
                kind=b.kind,
                file=self.source.relative_path,
                namespace=b.namespace,
                line=b.line,
                methods=tuple(b.methods),
                properties=tuple(b.properties),
                fields=tuple(b.fields),
                base_types=tuple(b.base_types),
                imports=imports,
                attributes=tuple(b.attributes),
                modifiers=tuple(b.modifiers),
                primary_parameters=tuple(b.primary_parameters),
                container=b.container,
            )
            for b in self._builders
        ]

    # --- scope handling ---

    def _current_namespace(self, stack: list[_Frame]) -> str:
        parts = [self.file_namespace] if self.file_namespace else []
        parts.extend(f.namespace for f in stack if f.kind == "namespace" and f.namespace)
        return ".".join(parts)

    def _enclosing_type(self, stack: list[_Frame]) -> _TypeBuilder | None:
        for frame in reversed(stack):
            if frame.kind == "type":
                return frame.builder
        return None

    def _open_member(self, start: int, end: int, stack: list[_Frame]) -> _Frame:
        """Classify the header tokens[start:end] of a ``{`` at member scope."""
        toks = self.tokens
        parent = stack[-1]
        attrs, body = self._skip_attributes(start, end)
        h = toks[body:end]
        if not h:
            return _Frame("opaque", end)

        if h[0].value == "namespace":
            return _Frame("namespace", end, namespace=join_tokens(h[1:]))

        if self._top_level_index(h, ("=", "=>")) is not None:
            # Field/property initializer or lambda; the declaration ends at ``;``
            return _Frame("init", end)

        type_idx = self._type_keyword_index(h)
        if type_idx is not None:
            if h[type_idx].value == "enum" or self._is_annotation_type(body, type_idx):
                return _Frame("opaque", end)
            builder = self._new_type(h, type_idx, attrs, stack)
            if builder is None:
                return _Frame("opaque", end)
            return _Frame("type", end, builder=builder)

        if parent.kind != "type" or any(t.value in ("delegate", "event") for t in h):
            return _Frame("opaque", end)

        if self._parameter_group(h) is not None:
            return _Frame("method", end, header=(body, end), attributes=attrs)

        if self.dialect == CSHARP and self._split_name(h) is not None:
            return _Frame("property", end, header=(body, end), attributes=attrs)

        return _Frame("opaque", end)

    def _close(self, frame: _Frame, close: int, stack: list[_Frame]) -> None:
        if frame.kind == "type" and frame.builder is not None:
            self._builders.append(frame.builder)
            return
        owner = self._enclosing_type(stack)
        if owner is None or stack[-1].kind != "type":
            return
        if frame.kind == "method" and frame.header is not None:
            start, end = frame.header
            body = self.tokens[frame.open_index + 1:close]
            method = self._build_method(start, end, owner, body, frame.attributes, close_line=self.tokens[close].line)
            if method is not None:
                owner.methods.append(method)
        elif frame.kind == "property" and frame.header is not None:
            start, end = frame.header
            accessors = self._accessors(frame.open_index + 1, close)
            prop = self._build_property(self.tokens[start:end], owner, accessors)
            if prop is not None:
                owner.properties.append(prop)

    def _end_statement(self, start: int, end: int, stack: list[_Frame]) -> None:
        """Handle a declaration terminated by ``;`` at member scope."""
        toks = self.tokens
        parent = stack[-1]
        attrs, body = self._skip_attributes(start, end)
        h = toks[body:end]
        if not h:
            return
        first = h[0].value

        if parent.kind in ("file", "namespace"):
            if first == "using" or (first == "global" and len(h) > 1 and h[1].value == "using"):
                self._add_using(h[1:] if first == "using" else h[2:])
            elif first == "import" and self.dialect == JAVA:
                self._add_java_import(h[1:])
            elif first in ("package", "namespace"):
                self.file_namespace = join_tokens(h[1:])
            else:
                type_idx = self._type_keyword_index(h)
                if type_idx is not None and h[type_idx].value != "enum":
                    builder = self._new_type(h, type_idx, attrs, stack)
                    if builder is not None:
                        self._builders.append(builder)
            return

        owner = parent.builder
        if owner is None or first == "=":
            # ``= value;`` after an auto-property body
            return

        type_idx = self._type_keyword_index(h)
        if type_idx is not None:
            if h[type_idx].value != "enum":
                builder = self._new_type(h, type_idx, attrs, stack)
                if builder is not None:
                    self._builders.append(builder)
            return

        if any(t.value in ("delegate", "event") for t in h if t.kind == "ident"):
            return

        arrow = self._top_level_index(h, ("=>",))
        eq = self._top_level_index(h, ("=",))
        paren = self._parameter_group(h)

        if arrow is not None and (eq is None or arrow < eq):
            if paren is not None and paren < arrow:
                body_toks = toks[body + arrow + 1:end]
                method = self._build_method(
                    body, body + arrow, owner, body_toks, attrs,
                    close_line=toks[end].line, expression_body=True,
                )
                if method is not None:
                    owner.methods.append(method)
            elif self.dialect == CSHARP:
                prop = self._build_property(h[:arrow], owner, ("get",))
                if prop is not None:
                    owner.properties.append(prop)
            return

        if paren is not None and (eq is None or paren < eq):
            method = self._build_method(body, end, owner, None, attrs, close_line=toks[end].line)
            if method is not None:
                owner.methods.append(method)
            return

        owner.fields.extend(self._build_fields(h, owner))

    # --- imports ---

    def _add_import(self, name: str) -> None:
        if name and name not in self.imports:
            self.imports.append(name)

    def _add_using(self, h: Sequence[Token]) -> None:
        if h and h[0].value == "static":
            h = h[1:]
        eq = self._top_level_index(h, ("=",))
        if eq is not None:
            h = h[eq + 1:]
        if not h or not all(t.kind == "ident" or t.value in (".", "::") for t in h):
            # ``using var x = ...;`` in top-level statements, or a generic alias
            return
        self._add_import(join_tokens(h).replace("::", "."))

    def _add_java_import(self, h: Sequence[Token]) -> None:
        if h and h[0].value == "static":
            h = h[1:]
        name = join_tokens(h)
        if name.endswith(".*"):
            name = name[:-2]
        self._add_import(name)

    # --- type declarations ---

    def _type_keyword_index(self, h: Sequence[Token]) -> int | None:
        """Index of a type keyword preceded only by modifiers, else None."""
        for idx, tok in enumerate(h):
            if tok.kind == "ident" and tok.value in TYPE_KEYWORDS:
                nxt = h[idx + 1] if idx + 1 < len(h) else None
                if nxt is not None and nxt.kind == "ident":
                    return idx
                return None
            if tok.value == "@" and self.dialect == JAVA:
                continue
            if tok.kind != "ident" or tok.value not in MODIFIERS:
                return None
        return None

    def _is_annotation_type(self, body: int, type_idx: int) -> bool:
        """Java ``@interface`` declarations."""
        return type_idx > 0 and self.tokens[body + type_idx - 1].value == "@"

    def _new_type(
        self,
        h: Sequence[Token],
        type_idx: int,
        attrs: list[str],
        stack: list[_Frame],
    ) -> _TypeBuilder | None:
        kind = h[type_idx].value
        j = type_idx + 1
        if kind == "record" and j < len(h) and h[j].value in ("struct", "class"):
            j += 1
        if j >= len(h) or h[j].kind != "ident":
            return None
        name_tok = h[j]
        j += 1

        outer = self._enclosing_type(stack)
        builder = _TypeBuilder(
            name=name_tok.value,
            kind=kind,
            offset=name_tok.offset,
            line=name_tok.line,
            namespace=self._current_namespace(stack),
            container=outer.qualified_container if outer else "",
            attributes=list(attrs),
            modifiers=[t.value for t in h[:type_idx] if t.kind == "ident"],
        )

        if j < len(h) and h[j].value == "<":
            close = self._match(h, j)
            j = len(h) if close is None else close + 1
        if j < len(h) and h[j].value == "(":
            close = self._match(h, j)
            if close is None:
                raise ParseError(f"unbalanced parentheses in declaration of {name_tok.value}", name_tok.line)
            builder.primary_parameters = self._parse_parameters(h[j + 1:close])
            if kind == "record":
                # Positional record parameters become public members
                for param in builder.primary_parameters:
                    if self.dialect == CSHARP:
                        builder.properties.append(
                            PropertyModel(param.name, param.type_name, "public", ("get", "init"))
                        )
                    else:
                        builder.fields.append(FieldModel(param.name, param.type_name, "private"))
            j = close + 1

        builder.base_types = self._base_types(h[j:])
        return builder

    def _base_types(self, h: Sequence[Token]) -> list[str]:
        """Base class/interface names from the tail of a type header."""
        if not h:
            return []
        segments: list[Sequence[Token]] = []
        if self.dialect == CSHARP:
            if h[0].value != ":":
                return []
            end = len(h)
            for idx in range(1, len(h)):
                if h[idx].kind == "ident" and h[idx].value == "where":
                    end = idx
                    break
            segments = self._split_commas(h[1:end])
        else:
            current: list[Token] | None = None
            for tok in h:
                if tok.kind == "ident" and tok.value in ("extends", "implements"):
                    if current is not None:
                        segments.extend(self._split_commas(current))
                    current = []
                elif tok.kind == "ident" and tok.value == "permits":
                    break
                elif current is not None:
                    current.append(tok)
            if current:
                segments.extend(self._split_commas(current))

        names = []
        for seg in segments:
            seg = self._drop_groups(seg, "(")
            text = join_tokens(seg)
            if text and text not in names:
                names.append(text)
        return names

    # --- methods ---

    def _build_method(
        self,
        start: int,
        end: int,
        owner: _TypeBuilder,
        body: Sequence[Token] | None,
        attrs: list[str],
        close_line: int,
        expression_body: bool = False,
    ) -> MethodModel | None:
        h = self.tokens[start:end]
        paren = self._parameter_group(h)
        if paren is None:
            return None
        close = self._match(h, paren)
        if close is None:
            raise ParseError("unbalanced parentheses in method declaration", h[paren].line)

        modifiers, k = self._leading_modifiers(h)
        if k < len(h) and h[k].value == "<":
            # Java generic method: ``public <T> T get()``
            generic_close = self._match(h, k)
            if generic_close is not None:
                k = generic_close + 1

        name, name_idx = self._method_name(h, paren)
        return_type = join_tokens(h[k:name_idx]) if name_idx > k else ""
        if return_type.endswith("."):
            # Explicit interface implementation: ``void IFoo.Bar()``
            return_type = join_tokens(h[k:self._qualifier_start(h, name_idx)])

        is_constructor = not return_type and name == owner.name
        if body is not None:
            stats = analyze_body(body, expression_body=expression_body)
            complexity = stats.complexity
            has_catch = stats.has_error_handling
            statements = stats.statement_count
        else:
            complexity, has_catch, statements = 1, False, 0

        name_line = h[name_idx].line if name_idx < len(h) else h[0].line
        return MethodModel(
            name=name,
            visibility=self._visibility(modifiers, owner),
            is_async="async" in modifiers,
            complexity=complexity,
            has_error_handling=has_catch,
            parameters=tuple(self._parse_parameters(h[paren + 1:close])),
            return_type=return_type,
            statement_count=statements,
            is_constructor=is_constructor,
            is_static="static" in modifiers,
            has_body=body is not None,
            line=name_line,
            lines_of_code=max(1, close_line - name_line + 1),
            attributes=tuple(attrs),
        )

    def _method_name(self, h: Sequence[Token], paren: int) -> tuple[str, int]:
        op_idx = next(
            (idx for idx in range(paren) if h[idx].kind == "ident" and h[idx].value == "operator"),
            None,
        )
        if op_idx is not None:
            return "operator " + join_tokens(h[op_idx + 1:paren]), op_idx
        j = paren - 1
        if h[j].value == ">":
            j = self._match_back(h, j) - 1
        name = h[j].value
        if j > 0 and h[j - 1].value == "~":
            return "~" + name, j - 1
        return name, j

    def _qualifier_start(self, h: Sequence[Token], name_idx: int) -> int:
        j = name_idx
        while j >= 2 and h[j - 1].value == "." and h[j - 2].kind == "ident":
            j -= 2
        return j

    def _parameter_group(self, h: Sequence[Token]) -> int | None:
        """Index of the ``(`` that opens a method's parameter list, if any."""
        if any(t.kind == "ident" and t.value == "operator" for t in h):
            for idx, _ in self._top_level(h):
                if h[idx].value == "(" and idx > 0 and self._after_operator(h, idx):
                    return idx
            return None
        for idx, tok in self._top_level(h):
            if tok.value != "(" or idx == 0:
                continue
            prev = h[idx - 1]
            if prev.value == ">":
                opener = self._match_back(h, idx - 1)
                if opener > 0 and h[opener - 1].kind == "ident" and h[opener - 1].value not in NON_NAME_KEYWORDS:
                    return idx
            elif prev.kind == "ident" and prev.value not in NON_NAME_KEYWORDS:
                return idx
        return None

    def _after_operator(self, h: Sequence[Token], idx: int) -> bool:
        for j in range(idx - 1, -1, -1):
            if h[j].kind == "ident" and h[j].value == "operator":
                return j < idx - 1
        return False

    def _parse_parameters(self, toks: Sequence[Token]) -> list[ParameterModel]:
        params = []
        for seg in self._split_commas(toks):
            seg = list(seg)
            # Attributes / annotations on parameters
            while seg and seg[0].value == "[":
                close = self._match(seg, 0)
                seg = seg[close + 1:] if close is not None else []
            while seg and seg[0].value == "@" and len(seg) > 1:
                seg = seg[2:]
                while len(seg) > 1 and seg[0].value == "." and seg[1].kind == "ident":
                    seg = seg[2:]
                if seg and seg[0].value == "(":
                    close = self._match(seg, 0)
                    seg = seg[close + 1:] if close is not None else []
            eq = self._top_level_index(seg, ("=",))
            if eq is not None:
                seg = seg[:eq]
            seg = [t for t in seg if not (t.kind == "ident" and t.value in PARAMETER_MODIFIERS)]
            if not seg:
                continue
            if len(seg) == 1:
                params.append(ParameterModel(seg[0].value, ""))
            else:
                params.append(ParameterModel(seg[-1].value, join_tokens(seg[:-1])))
        return params

    # --- properties & fields ---

    def _split_name(self, h: Sequence[Token]) -> tuple[int, int, str] | None:
        """(type start, type end, name) for a ``Type Name`` member header."""
        modifiers, k = self._leading_modifiers(h)
        end = len(h)
        if end and h[-1].value == "]":
            # Indexer: ``int this[int i]``
            opener = self._match_back(h, end - 1)
            if opener > 0 and h[opener - 1].value == "this":
                return (k, self._qualifier_start(h, opener - 1), "this[]")
            return None
        if not end or h[-1].kind != "ident":
            return None
        type_end = self._qualifier_start(h, end - 1)
        if type_end <= k:
            return None
        return (k, type_end, h[-1].value)

    def _build_property(
        self,
        h: Sequence[Token],
        owner: _TypeBuilder,
        accessors: Sequence[str],
    ) -> PropertyModel | None:
        _, h_start = self._skip_attribute_tokens(h)
        h = h[h_start:]
        split = self._split_name(h)
        if split is None:
            return None
        type_start, type_end, name = split
        modifiers, _ = self._leading_modifiers(h)
        return PropertyModel(
            name=name,
            type_name=join_tokens(h[type_start:type_end]),
            visibility=self._visibility(modifiers, owner),
            accessors=tuple(accessors),
        )

    def _accessors(self, start: int, end: int) -> list[str]:
        """Accessor declarations at depth 0 of a property body."""
        accessors: list[str] = []
        depth = 0
        pending: list[str] = []
        for tok in self.tokens[start:end]:
            if tok.kind == "op":
                if tok.value in ("{", "("):
                    depth += 1
                elif tok.value in ("}", ")"):
                    depth -= 1
                pending = []
                continue
            if depth != 0 or tok.kind != "ident":
                continue
            if tok.value in ACCESSOR_KEYWORDS:
                accessors.append(" ".join(pending + [tok.value]))
                pending = []
            elif tok.value in VISIBILITY_KEYWORDS:
                pending.append(tok.value)
            else:
                pending = []
        return accessors

    def _build_fields(self, h: Sequence[Token], owner: _TypeBuilder) -> list[FieldModel]:
        modifiers, k = self._leading_modifiers(h)
        segments = self._split_commas(h[k:])
        if not segments:
            return []
        visibility = self._visibility(modifiers, owner)
        is_static = "static" in modifiers or "const" in modifiers

        result = []
        type_name = ""
        for n, seg in enumerate(segments):
            eq = self._top_level_index(seg, ("=",))
            decl = list(seg[:eq] if eq is not None else seg)
            # Array brackets after a Java field name: ``int counts[]``
            while decl and decl[-1].value in ("[", "]"):
                decl.pop()
            if not decl or decl[-1].kind != "ident":
                continue
            if n == 0:
                if len(decl) < 2:
                    return []
                type_name = join_tokens(decl[:-1])
            result.append(FieldModel(decl[-1].value, type_name, visibility, is_static))
        return result

    # --- shared helpers ---

    def _visibility(self, modifiers: Sequence[str], owner: _TypeBuilder) -> str:
        declared = [m for m in modifiers if m in VISIBILITY_KEYWORDS]
        if declared:
            return " ".join(declared)
        if owner.kind == "interface":
            return "public"
        return "private" if self.dialect == CSHARP else "package"

    def _leading_modifiers(self, h: Sequence[Token]) -> tuple[list[str], int]:
        modifiers = []
        k = 0
        while k < len(h) and h[k].kind == "ident" and h[k].value in MODIFIERS:
            # ``new()`` / ``default(T)`` are expressions, not modifiers
            if k + 1 < len(h) and h[k + 1].value == "(":
                break
            modifiers.append(h[k].value)
            k += 1
        return modifiers, k

    def _skip_attributes(self, start: int, end: int) -> tuple[list[str], int]:
        """Skip leading ``[Attr]`` / ``@Annotation`` groups in tokens[start:end].

        Returns the attribute names and the absolute index after them.
        """
        names, offset = self._skip_attribute_tokens(self.tokens[start:end])
        return names, start + offset

    def _skip_attribute_tokens(self, h: Sequence[Token]) -> tuple[list[str], int]:
        names: list[str] = []
        j = 0
        n = len(h)
        while j < n:
            tok = h[j]
            if tok.value == "[" and self.dialect == CSHARP:
                close = self._match(h, j)
                if close is None:
                    raise ParseError("unbalanced attribute brackets", tok.line)
                for item in self._split_commas(h[j + 1:close]):
                    item = list(item)
                    if len(item) > 2 and item[1].value == ":":
                        # Attribute target: ``[return: NotNull]``
                        item = item[2:]
                    idents = []
                    for t in item:
                        if t.kind == "ident":
                            idents.append(t.value)
                        elif t.value != ".":
                            break
                    if idents:
                        names.append(idents[-1])
                j = close + 1
            elif (
                tok.value == "@" and self.dialect == JAVA
                and j + 1 < n and h[j + 1].kind == "ident" and h[j + 1].value != "interface"
            ):
                j += 1
                name = h[j].value
                j += 1
                while j + 1 < n and h[j].value == "." and h[j + 1].kind == "ident":
                    name = h[j + 1].value
                    j += 2
                names.append(name)
                if j < n and h[j].value == "(":
                    close = self._match(h, j)
                    if close is None:
                        raise ParseError("unbalanced annotation arguments", tok.line)
                    j = close + 1
            else:
                break
        return names, j

    @staticmethod
    def _top_level(h: Sequence[Token]):
        """Yield (index, token) for tokens outside any (), [] or {} group."""
        depth = 0
        for idx, tok in enumerate(h):
            if tok.kind == "op":
                if tok.value in ("(", "[", "{"):
                    if depth == 0:
                        yield idx, tok
                    depth += 1
                    continue
                if tok.value in (")", "]", "}"):
                    depth = max(0, depth - 1)
                    continue
            if depth == 0:
                yield idx, tok

    def _top_level_index(self, h: Sequence[Token], values: tuple[str, ...]) -> int | None:
        for idx, tok in self._top_level(h):
            if tok.kind == "op" and tok.value in values:
                return idx
        return None

    @staticmethod
    def _match(h: Sequence[Token], open_idx: int) -> int | None:
        """Index of the token closing the group opened at ``open_idx``."""
        opener = h[open_idx].value
        closer = _OPEN_CLOSE[opener]
        depth = 0
        for idx in range(open_idx, len(h)):
            v = h[idx].value
            if v == opener:
                depth += 1
            elif v == closer:
                depth -= 1
                if depth == 0:
                    return idx
        return None

    @staticmethod
    def _match_back(h: Sequence[Token], close_idx: int) -> int:
        """Index of the opener matching the ``>``/``]``/``)`` at ``close_idx``."""
        closer = h[close_idx].value
        opener = {">": "<", "]": "[", ")": "("}[closer]
        depth = 0
        for idx in range(close_idx, -1, -1):
            v = h[idx].value
            if v == closer:
                depth += 1
            elif v == opener:
                depth -= 1
                if depth == 0:
                    return idx
        return 0

    @staticmethod
    def _split_commas(h: Sequence[Token]) -> list[Sequence[Token]]:
        """Split on commas outside (), [], {} and <> groups."""
        segments: list[Sequence[Token]] = []
        depth = 0
        start = 0
        for idx, tok in enumerate(h):
            v = tok.value
            if tok.kind != "op":
                continue
            if v in ("(", "[", "{", "<"):
                depth += 1
            elif v in (")", "]", "}", ">"):
                depth = max(0, depth - 1)
            elif v == "," and depth == 0:
                if idx > start:
                    segments.append(h[start:idx])
                start = idx + 1
        if start < len(h):
            segments.append(h[start:])
        return segments

    def _drop_groups(self, h: Sequence[Token], opener: str) -> list[Token]:
        """Remove every ``opener``-delimited group, e.g. base-constructor args."""
        out: list[Token] = []
        j = 0
        while j < len(h):
            if h[j].value == opener:
                close = self._match(h, j)
                j = len(h) if close is None else close + 1
                continue
            out.append(h[j])
            j += 1
        return out


def extract_classes(source: SourceFile) -> list[ClassModel]:
    """Extract every class/interface/struct/record declared in ``source``.

    Raises:
        ParseError: when the file cannot be scoped reliably (unterminated
            literal or comment, unbalanced braces)
    """
    return StructuralExtractor(source).extract()
