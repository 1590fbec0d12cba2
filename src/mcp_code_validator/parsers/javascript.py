"""JavaScript/TypeScript parser producing typed code elements.

Built on tree-sitter grammars from ``tree-sitter-language-pack``. Syntax
errors never abort a parse: tree-sitter recovers and whatever could be
recognized is returned.
"""

import re

from loguru import logger
from tree_sitter_language_pack import get_parser

from ..config.defaults import grammar_for_extension
from ..core.exceptions import ParsingError
from ..core.models import (
    ExportInfo,
    FrontendElement,
    ImportInfo,
    NextJsPattern,
    ParsedClass,
    ParsedCode,
    ParsedFunction,
    ReactComponent,
    ReactHook,
)

FUNCTION_VALUE_TYPES = frozenset(
    {"arrow_function", "function", "function_expression", "generator_function"}
)
JSX_NODE_TYPES = frozenset({"jsx_element", "jsx_self_closing_element", "jsx_fragment"})

HOOK_NAME_PATTERN = re.compile(r"^use[A-Z0-9_]")
HOOK_USAGE_PATTERN = re.compile(r"\buse[A-Z]\w*")
CLASS_PROP_PATTERN = re.compile(r"this\.props\.(\w+)")

BUILTIN_HOOK_TYPES = {
    "useState": "state",
    "useEffect": "effect",
    "useLayoutEffect": "effect",
    "useCallback": "callback",
    "useMemo": "memo",
    "useRef": "ref",
    "useContext": "context",
    "useReducer": "reducer",
}

NEXTJS_PAGE_FUNCTIONS = frozenset({"getServerSideProps", "getStaticProps", "getStaticPaths"})
NEXTJS_APP_ROUTER_FUNCTIONS = frozenset({"generateMetadata", "generateViewport", "generateStaticParams"})


def _text(node) -> str:
    if node is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _is_default_export(node) -> bool:
    """True when ``node`` sits inside an ``export default`` statement."""
    parent = node.parent
    while parent is not None:
        if parent.type == "export_statement":
            return any(child.type == "default" for child in parent.children)
        parent = parent.parent
    return False


class JavaScriptParser:
    """Extracts functions, classes, React and Next.js constructs from JS/TS source."""

    def __init__(self) -> None:
        self._parsers: dict[str, object] = {}

    def _get_parser(self, grammar: str):
        """Load a tree-sitter parser per grammar on first use."""
        parser = self._parsers.get(grammar)
        if parser is None:
            try:
                parser = get_parser(grammar)
            except Exception as e:
                raise ParsingError(
                    f"tree-sitter grammar '{grammar}' is not available: {e}",
                    context={"grammar": grammar},
                ) from e
            self._parsers[grammar] = parser
        return parser

    def parse(self, content: str, file_extension: str = "ts") -> ParsedCode:
        """Parse source text.

        Args:
            content: Source text
            file_extension: ``ts``, ``tsx``, ``js``, ``jsx`` (with or without a
                dot) or a file name; selects the grammar

        Returns:
            ParsedCode; element lists are neither ordered nor deduplicated
        """
        parsed = ParsedCode()
        if not content.strip():
            return parsed

        grammar = grammar_for_extension(file_extension)
        tree = self._get_parser(grammar).parse(content.encode("utf-8"))
        if tree.root_node.has_error:
            logger.debug(f"Source has syntax errors ({grammar}); returning partial results")

        self._visit(tree.root_node, parsed)

        default_exports = {e.name for e in parsed.exports if e.export_type == "default"}
        for component in parsed.react_components:
            if component.name in default_exports:
                component.is_default_export = True

        return parsed

    def _visit(self, root, parsed: ParsedCode) -> None:
        stack = [root]
        while stack:
            node = stack.pop()
            node_type = node.type

            if node_type == "import_statement":
                self._parse_import(node, parsed)
            elif node_type == "export_statement":
                self._parse_export(node, parsed)
            elif node_type in ("function_declaration", "generator_function_declaration"):
                self._parse_function(node, node.child_by_field_name("name"), node, parsed)
            elif node_type == "method_definition":
                self._parse_function(node, node.child_by_field_name("name"), node, parsed)
            elif node_type == "variable_declarator":
                value = node.child_by_field_name("value")
                name = node.child_by_field_name("name")
                if value is not None and value.type in FUNCTION_VALUE_TYPES and name is not None:
                    if name.type == "identifier":
                        self._parse_function(node, name, value, parsed)
            elif node_type in ("class_declaration", "abstract_class_declaration"):
                self._parse_class(node, parsed)
            elif node_type == "call_expression":
                self._parse_call(node, parsed)

            stack.extend(reversed(node.children))

    # -- imports / exports ----------------------------------------------------

    @staticmethod
    def _parse_import(node, parsed: ParsedCode) -> None:
        source = node.child_by_field_name("source")
        if source is None:
            source = next((c for c in node.children if c.type == "string"), None)
        if source is None:
            return

        names: list[str] = []
        clause = next((c for c in node.children if c.type == "import_clause"), None)
        if clause is not None:
            for child in clause.children:
                if child.type == "identifier":
                    names.append(_text(child))
                elif child.type == "named_imports":
                    for spec in child.children:
                        if spec.type == "import_specifier":
                            alias = spec.child_by_field_name("alias")
                            name = spec.child_by_field_name("name")
                            names.append(_text(alias or name))
                elif child.type == "namespace_import":
                    ident = next((c for c in child.children if c.type == "identifier"), None)
                    if ident is not None:
                        names.append(_text(ident))

        parsed.imports.append(ImportInfo(source=_text(source).strip("'\"`"), imports=names))

    @staticmethod
    def _parse_export(node, parsed: ParsedCode) -> None:
        is_default = any(child.type == "default" for child in node.children)
        declaration = node.child_by_field_name("declaration")
        value = node.child_by_field_name("value")

        if is_default:
            target = declaration or value
            if target is None:
                return
            if target.type == "identifier":
                parsed.exports.append(ExportInfo(name=_text(target), export_type="default"))
                return
            name = target.child_by_field_name("name")
            if name is not None:
                parsed.exports.append(ExportInfo(name=_text(name), export_type="default"))
            return

        if declaration is not None:
            name = declaration.child_by_field_name("name")
            if name is not None:
                parsed.exports.append(ExportInfo(name=_text(name), export_type="named"))
            else:
                for declarator in declaration.children:
                    if declarator.type == "variable_declarator":
                        name = declarator.child_by_field_name("name")
                        if name is not None and name.type == "identifier":
                            parsed.exports.append(
                                ExportInfo(name=_text(name), export_type="named")
                            )
            return

        clause = next((c for c in node.children if c.type == "export_clause"), None)
        if clause is not None:
            for spec in clause.children:
                if spec.type == "export_specifier":
                    alias = spec.child_by_field_name("alias")
                    name = spec.child_by_field_name("name")
                    exported = _text(alias or name)
                    export_type = "default" if exported == "default" else "named"
                    if export_type == "default":
                        exported = _text(name)
                    parsed.exports.append(ExportInfo(name=exported, export_type=export_type))

    # -- functions / classes --------------------------------------------------

    def _parse_function(self, node, name_node, function_node, parsed: ParsedCode) -> None:
        """Record a function and any React/Next.js role it plays.

        ``node`` is the declaring node (declaration, method or declarator);
        ``function_node`` owns the ``body`` and ``parameters`` fields.
        """
        body = function_node.child_by_field_name("body")
        if name_node is None or body is None:
            return

        name = _text(name_node)
        parsed.functions.append(ParsedFunction(name=name, body=_text(body)))

        if self._is_functional_component(function_node, name):
            parsed.react_components.append(
                ReactComponent(
                    name=name,
                    component_type="functional",
                    props=self._extract_props(function_node),
                    hooks=self._extract_hook_usage(_text(function_node)),
                    body=_text(node),
                    is_default_export=_is_default_export(node),
                )
            )

        pattern = self._nextjs_pattern(node, name)
        if pattern is not None:
            parsed.nextjs_patterns.append(pattern)

    def _parse_class(self, node, parsed: ParsedCode) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return

        name = _text(name_node)
        text = _text(node)
        parsed.classes.append(ParsedClass(name=name, body=text))

        heritage = next((c for c in node.children if c.type == "class_heritage"), None)
        if heritage is not None and "Component" in _text(heritage):
            props: dict[str, None] = dict.fromkeys(CLASS_PROP_PATTERN.findall(text))
            parsed.react_components.append(
                ReactComponent(
                    name=name,
                    component_type="class",
                    props=list(props),
                    hooks=[],
                    body=text,
                    is_default_export=_is_default_export(node),
                )
            )

    @staticmethod
    def _is_functional_component(function_node, name: str) -> bool:
        if not name[:1].isupper():
            return False
        if "createElement(" in _text(function_node):
            return True

        stack = [function_node]
        while stack:
            current = stack.pop()
            if current.type in JSX_NODE_TYPES:
                return True
            stack.extend(current.children)
        return False

    @staticmethod
    def _extract_props(function_node) -> list[str]:
        """Destructured prop names from the first parameter."""
        parameters = function_node.child_by_field_name("parameters")
        if parameters is None:
            # Single unparenthesized arrow parameter
            return []

        params = parameters.named_children
        if not params:
            return []

        param = params[0]
        if param.type in ("required_parameter", "optional_parameter"):
            param = param.child_by_field_name("pattern") or param
        if param.type != "object_pattern":
            return []

        props: list[str] = []
        for child in param.named_children:
            if child.type == "shorthand_property_identifier_pattern":
                props.append(_text(child))
            elif child.type == "pair_pattern":
                props.append(_text(child.child_by_field_name("key")))
            elif child.type == "object_assignment_pattern":
                props.append(_text(child.child_by_field_name("left")))
        return props

    @staticmethod
    def _extract_hook_usage(text: str) -> list[str]:
        return list(dict.fromkeys(HOOK_USAGE_PATTERN.findall(text)))

    @staticmethod
    def _nextjs_pattern(node, name: str) -> NextJsPattern | None:
        text = _text(node)

        if name == "handler" or "NextApiRequest" in text or "NextApiResponse" in text:
            return NextJsPattern(name=name, pattern_type="api", exports=["default"], body=text)
        if name in NEXTJS_PAGE_FUNCTIONS:
            return NextJsPattern(name=name, pattern_type="page", exports=[name], body=text)
        if name in NEXTJS_APP_ROUTER_FUNCTIONS:
            return NextJsPattern(name=name, pattern_type="app-router", exports=[name], body=text)
        if name == "middleware":
            return NextJsPattern(name=name, pattern_type="middleware", exports=[name], body=text)
        return None

    # -- calls: hooks and CSS-in-JS -------------------------------------------

    def _parse_call(self, node, parsed: ParsedCode) -> None:
        function = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")
        if function is None:
            return

        if arguments is not None and arguments.type == "template_string":
            element = self._styled_element(node, function, arguments)
            if element is not None:
                parsed.frontend_elements.append(element)
            return

        if function.type == "identifier":
            hook_name = _text(function)
        elif function.type == "member_expression":
            hook_name = _text(function.child_by_field_name("property"))
        else:
            return

        if not HOOK_NAME_PATTERN.match(hook_name):
            return

        parsed.react_hooks.append(
            ReactHook(
                name=hook_name,
                hook_type=BUILTIN_HOOK_TYPES.get(hook_name, "custom"),
                dependencies=self._hook_dependencies(arguments),
                body=_text(node),
            )
        )

    @staticmethod
    def _hook_dependencies(arguments) -> list[str]:
        """Entries of a trailing dependency array, e.g. ``useEffect(fn, [a, b])``."""
        if arguments is None:
            return []
        args = arguments.named_children
        if len(args) < 2 or args[-1].type != "array":
            return []
        return [_text(item) for item in args[-1].named_children]

    @staticmethod
    def _styled_element(node, function, template) -> FrontendElement | None:
        tag = _text(function)
        if tag.startswith(("styled.", "styled(")) or tag == "createGlobalStyle":
            element_type, fallback = "styled-component", "StyledComponent"
        elif tag in ("css", "keyframes", "injectGlobal"):
            element_type, fallback = "emotion", "EmotionStyle"
        else:
            return None

        name = fallback
        parent = node.parent
        if parent is not None and parent.type == "variable_declarator":
            declared = parent.child_by_field_name("name")
            if declared is not None and declared.type == "identifier":
                name = _text(declared)

        return FrontendElement(
            name=name,
            element_type=element_type,
            styles=_text(template).strip("`"),
            body=_text(node),
        )
