"""Tests for the JavaScript/TypeScript parser."""

import pytest

from mcp_code_validator.parsers.javascript import JavaScriptParser


@pytest.fixture(scope="module")
def parser():
    return JavaScriptParser()


def _names(items):
    return [item.name for item in items]


class TestFunctionsAndClasses:
    def test_function_declarations_and_arrows(self, parser):
        code = """
function add(a, b) { return a + b; }
const double = (x) => { return x * 2; };
const legacy = function () { return 1; };
function* ids() { yield 1; }
"""
        result = parser.parse(code, "js")

        assert set(_names(result.functions)) == {"add", "double", "legacy", "ids"}
        add = next(f for f in result.functions if f.name == "add")
        assert add.body == "{ return a + b; }"

    def test_methods_are_functions(self, parser):
        code = "class Service { start() { this.run(); } stop() {} }"
        result = parser.parse(code, "ts")

        assert set(_names(result.functions)) == {"start", "stop"}

    def test_class_body_is_full_declaration(self, parser):
        code = "class User extends BaseModel implements Serializable { id: string; }"
        result = parser.parse(code, "ts")

        assert _names(result.classes) == ["User"]
        assert result.classes[0].body.startswith("class User extends BaseModel")

    def test_empty_source(self, parser):
        result = parser.parse("   \n", "ts")
        assert result.total_elements == 0

    def test_syntax_errors_return_partial_results(self, parser):
        code = "function ok() { return 1; }\nfunction broken( {"
        result = parser.parse(code, "ts")

        assert "ok" in _names(result.functions)

    def test_typescript_generics(self, parser):
        code = "function identity<T>(value: T): T { return value; }"
        result = parser.parse(code, ".ts")

        assert _names(result.functions) == ["identity"]


class TestImportsAndExports:
    def test_import_forms(self, parser):
        code = """
import React, { useState, useEffect as effect } from 'react';
import * as path from "path";
import './side-effect.css';
"""
        result = parser.parse(code, "ts")

        imports = {i.source: i.imports for i in result.imports}
        assert imports["react"] == ["React", "useState", "effect"]
        assert imports["path"] == ["path"]
        assert imports["./side-effect.css"] == []

    def test_export_forms(self, parser):
        code = """
export function helper() {}
export const a = 1, b = 2;
export class Store {}
export { helper as util };
export default function Page() { return null; }
"""
        result = parser.parse(code, "ts")

        exports = {(e.name, e.export_type) for e in result.exports}
        assert ("helper", "named") in exports
        assert ("a", "named") in exports
        assert ("b", "named") in exports
        assert ("Store", "named") in exports
        assert ("util", "named") in exports
        assert ("Page", "default") in exports

    def test_default_export_of_identifier(self, parser):
        result = parser.parse("const x = 1;\nexport default x;", "js")
        assert [(e.name, e.export_type) for e in result.exports] == [("x", "default")]


class TestReact:
    def test_functional_component(self, parser):
        code = """
export default function Card({ title, subtitle = '', onClick: handle }) {
  const [open, setOpen] = useState(false);
  return <div onClick={handle}>{title}</div>;
}
"""
        result = parser.parse(code, "tsx")

        assert len(result.react_components) == 1
        card = result.react_components[0]
        assert card.name == "Card"
        assert card.component_type == "functional"
        assert card.props == ["title", "subtitle", "onClick"]
        assert card.hooks == ["useState"]
        assert card.is_default_export

    def test_arrow_component_exported_later(self, parser):
        code = """
const Badge = ({ label }: Props) => <span>{label}</span>;
export default Badge;
"""
        result = parser.parse(code, "tsx")

        assert _names(result.react_components) == ["Badge"]
        assert result.react_components[0].props == ["label"]
        assert result.react_components[0].is_default_export

    def test_file_name_selects_tsx_grammar(self, parser):
        code = "const Badge = ({ label }: Props) => <span>{label}</span>;\nexport default Badge;\n"

        result = parser.parse(code, "Badge.tsx")

        assert _names(result.react_components) == ["Badge"]

    def test_lowercase_function_is_not_component(self, parser):
        result = parser.parse("function render() { return <div />; }", "jsx")
        assert result.react_components == []

    def test_create_element_component(self, parser):
        code = "function Title() { return React.createElement('h1', null, 'hi'); }"
        result = parser.parse(code, "js")

        assert _names(result.react_components) == ["Title"]

    def test_class_component(self, parser):
        code = """
class Counter extends React.Component {
  render() { return <b>{this.props.count} {this.props.label} {this.props.count}</b>; }
}
"""
        result = parser.parse(code, "jsx")

        assert len(result.react_components) == 1
        counter = result.react_components[0]
        assert counter.component_type == "class"
        assert counter.props == ["count", "label"]

    def test_hooks(self, parser):
        code = """
function Widget() {
  const [v, setV] = React.useState(0);
  useEffect(() => { document.title = v; }, [v, setV]);
  const data = useFetch('/api');
  const user = username();
  return <p>{data}</p>;
}
"""
        result = parser.parse(code, "tsx")

        hooks = {h.name: h for h in result.react_hooks}
        assert set(hooks) == {"useState", "useEffect", "useFetch"}
        assert hooks["useState"].hook_type == "state"
        assert hooks["useEffect"].hook_type == "effect"
        assert hooks["useEffect"].dependencies == ["v", "setV"]
        assert hooks["useFetch"].hook_type == "custom"


class TestNextJs:
    @pytest.mark.parametrize(
        ("code", "name", "pattern_type"),
        [
            ("export async function getServerSideProps(ctx) { return { props: {} }; }",
             "getServerSideProps", "page"),
            ("export async function getStaticPaths() { return { paths: [] }; }",
             "getStaticPaths", "page"),
            ("export default function handler(req, res) { res.end(); }", "handler", "api"),
            ("export async function generateMetadata() { return {}; }",
             "generateMetadata", "app-router"),
            ("export function middleware(request) { return null; }", "middleware", "middleware"),
        ],
    )
    def test_patterns(self, parser, code, name, pattern_type):
        result = parser.parse(code, "ts")

        assert [(p.name, p.pattern_type) for p in result.nextjs_patterns] == [(name, pattern_type)]

    def test_typed_api_route(self, parser):
        code = (
            "export default function users(req: NextApiRequest, res: NextApiResponse) "
            "{ res.json([]); }"
        )
        result = parser.parse(code, "ts")

        assert [(p.name, p.pattern_type) for p in result.nextjs_patterns] == [("users", "api")]


class TestCssInJs:
    def test_styled_components(self, parser):
        code = """
const Button = styled.button`
  color: red;
`;
const Wrapper = styled(Box)`padding: 4px;`;
const GlobalStyle = createGlobalStyle`body { margin: 0; }`;
"""
        result = parser.parse(code, "ts")

        elements = {e.name: e for e in result.frontend_elements}
        assert set(elements) == {"Button", "Wrapper", "GlobalStyle"}
        assert all(e.element_type == "styled-component" for e in elements.values())
        assert "color: red;" in elements["Button"].styles

    def test_emotion(self, parser):
        code = "const base = css`display: flex;`;\nconst spin = keyframes`from { opacity: 0; }`;"
        result = parser.parse(code, "ts")

        assert {(e.name, e.element_type) for e in result.frontend_elements} == {
            ("base", "emotion"),
            ("spin", "emotion"),
        }

    def test_unrelated_tagged_template(self, parser):
        result = parser.parse("const q = gql`query { a }`;", "ts")
        assert result.frontend_elements == []
