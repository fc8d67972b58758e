"""End-to-end rendering of template files."""

from __future__ import annotations

import pytest

from kiln import Environment, EscapedString, Scalar, Template


class TestConditionals:
    """if forms rendered through the whole pipeline."""

    def test_is_matches(self, env, write_template):
        path = write_template("{% if x is 5 %}yes{% endif %}")
        assert env.render(path, variables={"x": 5}) == "yes"

    def test_is_does_not_match(self, env, write_template):
        path = write_template("{% if x is 5 %}yes{% endif %}")
        assert env.render(path, variables={"x": 3}, always_recompile=True) == ""

    def test_is_not(self, env, write_template):
        path = write_template("{% if x is not 5 %}no{% endif %}")
        assert env.render(path, variables={"x": 3}) == "no"

    def test_is_not_with_undefined(self, env, write_template):
        path = write_template("{% if x is not 5 %}no{% endif %}")
        assert env.render(path) == "no"

    def test_not(self, env, write_template):
        path = write_template("{% if not admin %}guest{% endif %}")
        assert env.render(path, variables={"admin": ""}) == "guest"

    def test_multiline_block(self, env, write_template):
        path = write_template("<ul>\n{% if show %}\n<li>{{ item }}</li>\n{% endif %}\n</ul>")
        output = env.render(path, variables={"show": 1, "item": "a"})
        assert output == "<ul>\n\n<li>a</li>\n\n</ul>"


class TestLoops:
    """foreach over lists and mappings."""

    USERS = {"users": [{"name": "A"}, {"name": "B"}]}

    def test_single_line_loop(self, env, write_template):
        path = write_template("{% foreach u in users %}{{ u.name }}{% endforeach %}")
        assert env.render(path, variables=self.USERS) == "AB"

    def test_multiline_loop(self, env, write_template):
        path = write_template("{% foreach u in users %}\n- {{ u.name }}\n{% endforeach %}")
        assert env.render(path, variables=self.USERS) == "\n- A\n\n- B\n"

    def test_mapping_iterates_values(self, env):
        template = env.from_string(
            "{% foreach v in prices %}[{{ v }}]{% endforeach %}",
            variables={"prices": {"a": 1}},
        )
        assert template.render(prices={"a": 1, "b": 2.5}) == "[1][2.5]"

    def test_undefined_list_skips_loop(self, env):
        template = Template.from_artifact(
            '<?kiln if {"test":"defined","subject":["users"]} ?>'
            '<?kiln foreach {"item":"u","iter":["users"]} ?>x<?kiln endforeach ?><?kiln endif ?>',
            allowed_types={Scalar},
        )
        assert template.render() == ""

    def test_non_iterable_is_skipped(self, env):
        template = env.from_string("{% foreach u in n %}x{% endforeach %}", variables={"n": 3})
        assert template.render(n=3) == ""

    def test_item_outlives_loop(self, env):
        source = "{% foreach u in users %}\n{% endforeach %}\n{{ u }}"
        template = env.from_string(source, variables={"users": ["a", "b"]})
        assert template.render(users=["a", "b"]) == "\n\n\nb"

    def test_caller_variables_not_modified(self, env):
        variables = {"users": ["a"]}
        template = env.from_string("{% foreach u in users %}{{ u }}{% endforeach %}", variables=variables)
        template.render(variables)
        assert variables == {"users": ["a"]}

    def test_nested_loops(self, env):
        source = "{% foreach row in rows %}\n{% foreach c in row %}{{ c }}{% endforeach %};\n{% endforeach %}"
        rows = [[1, 2], [3]]
        template = env.from_string(source, variables={"rows": rows})
        assert template.render(rows=rows) == "\n12;\n\n3;\n"

    def test_nested_loop_over_item_attribute(self, env):
        source = (
            "{% foreach u in users %}\n"
            "{% foreach e in u.emails %}\n"
            "{{ e }}\n"
            "{% endforeach %}\n"
            "{% endforeach %}"
        )
        users = [{"emails": ["a@x", "b@x"]}]
        template = env.from_string(source, variables={"users": users})
        assert template.render(users=users) == "\n\na@x\n\nb@x\n\n"


class TestOutput:
    """Escaping and capability filtering."""

    def test_scalars_are_escaped(self, env, write_template):
        path = write_template("<p>{{ text }}</p>")
        assert env.render(path, variables={"text": "<script>"}) == "<p>&lt;script&gt;</p>"

    def test_disallowed_type_renders_nothing(self, write_template):
        env = Environment(types={EscapedString})
        path = write_template("{{ a }}|{{ b }}")
        output = env.render(path, variables={"a": "plain", "b": EscapedString("ok")})
        assert output == "|ok"

    def test_per_render_types(self, env, write_template):
        path = write_template("{{ a }}")
        assert env.render(path, variables={"a": "x"}, types={EscapedString}) == ""

    def test_default_capabilities_are_displayable_only(self, write_template):
        path = write_template("{{ a }}{{ b }}")
        output = Environment().render(path, variables={"a": "no", "b": EscapedString("yes")})
        assert output == "yes"

    def test_allow_changes_default(self, write_template):
        env = Environment()
        env.allow({Scalar})
        assert env.render(write_template("{{ a }}"), variables={"a": 1}) == "1"

    def test_undefined_variable_is_omitted(self, env, write_template):
        path = write_template("Hello {{ who }}!")
        assert env.render(path) == "Hello !"

    def test_displayable_zero_is_shown(self, write_template):
        env = Environment(types={EscapedString})
        path = write_template("[{{ n }}]")
        assert env.render(path, variables={"n": EscapedString("0")}) == "[0]"

    def test_displayable_zero_is_defined_in_debug(self, write_template):
        env = Environment(types={EscapedString}, debug=True)
        path = write_template("[{{ n }}]")
        assert env.render(path, variables={"n": EscapedString("0")}) == "[0]"

    def test_line_breaks_normalized(self, env, write_template):
        path = write_template("a\r\n{{ b }}\r\n", name="crlf.html")
        assert env.render(path, variables={"b": "B"}) == "a\nB\n"


class TestCompileDeterminism:
    """Same input, same artifact."""

    def test_compile_twice_identical(self, env):
        source = "{% foreach u in users %}{% if u.on %}{{ u.name }}{% endif %}{% endforeach %}"
        variables = {"users": [{"name": "A", "on": 1}]}
        assert env.compile(source, variables=variables) == env.compile(source, variables=variables)

    def test_recompile_overwrites_artifact(self, env, write_template, tmp_path):
        path = write_template("{{ a }}")
        env.render(path, variables={"a": "1"})
        first = (tmp_path / ".page.html").read_text()
        env.render(path, variables={"a": "1"}, always_recompile=True)
        assert (tmp_path / ".page.html").read_text() == first


class TestStreaming:
    def test_render_stream_matches_render(self, env):
        template = env.from_string("a{{ b }}c", variables={"b": 1})
        assert "".join(template.render_stream(b=1)) == template.render(b=1) == "a1c"

    def test_keyword_arguments_override_mapping(self, env):
        template = env.from_string("{{ b }}", variables={"b": 1})
        assert template.render({"b": 1}, b=2) == "2"

    @pytest.mark.parametrize("name", [None, "page.html"])
    def test_repr(self, env, name):
        template = env.from_string("x", name=name)
        assert repr(template) == f"<Template {name or '(string)'}>"
