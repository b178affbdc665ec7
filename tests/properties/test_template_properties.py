"""Property-based tests for template rendering."""

from hypothesis import given, strategies as st

from promptforge.templating import Template

# =============================================================================
# Strategies
# =============================================================================

# Text that contains no template markers
plain_text = st.text(
    alphabet=st.characters(
        whitelist_categories=["L", "N", "Zs", "Po"], blacklist_characters="{}"
    ),
    max_size=50,
)

identifier = st.from_regex(r"[a-z][a-z0-9_]{0,8}", fullmatch=True)

# Values whose rendered text is themselves
text_value = st.text(
    alphabet=st.characters(whitelist_categories=["L", "N", "Zs"]), max_size=20
)

# Values that look like template markers
marker_value = st.text(alphabet="{}abcxyz_() #/", max_size=30)


# =============================================================================
# Interpolation Properties
# =============================================================================


@given(text=plain_text)
def test_plain_text_renders_unchanged(text: str) -> None:
    """Property: text without markers is its own output."""
    assert Template(text).render() == text


@given(
    segments=st.lists(st.tuples(plain_text, identifier), max_size=6),
    tail=plain_text,
    data=st.data(),
)
def test_interpolation_matches_naive_substitution(
    segments: list[tuple[str, str]], tail: str, data: st.DataObject
) -> None:
    """Property: each {name} is replaced by its bound value."""
    names = {name for _, name in segments}
    bindings = {name: data.draw(text_value) for name in names}

    source = "".join(f"{text}{{{name}}}" for text, name in segments) + tail
    expected = "".join(f"{text}{bindings[name]}" for text, name in segments) + tail

    assert Template(source).render(bindings) == expected


@given(value=marker_value)
def test_function_output_is_never_reinterpolated(value: str) -> None:
    """Property: values that look like markers pass through function calls verbatim."""
    output = Template("{{upper(v)}}").render({"v": value})

    assert output == value.upper()


@given(value=marker_value)
def test_interpolated_values_are_never_reinterpolated(value: str) -> None:
    """Property: bound values are inserted as-is, even when they contain markers."""
    assert Template("<{v}>").render({"v": value}) == f"<{value}>"


@given(bindings=st.dictionaries(identifier, text_value, max_size=5))
def test_render_is_pure(bindings: dict[str, str]) -> None:
    """Property: rendering twice gives the same output and leaves inputs alone."""
    source = " ".join(f"{{{name}}}" for name in bindings)
    template = Template(source, bindings=bindings)
    snapshot = dict(bindings)

    assert template.render() == template.render()
    assert dict(template.bindings) == snapshot
    assert bindings == snapshot


# =============================================================================
# Loop Properties
# =============================================================================


@given(items=st.lists(text_value, max_size=10))
def test_loop_runs_once_per_item(items: list[str]) -> None:
    """Property: a loop emits one body per item with correct index/first/last."""
    template = Template("{{#each xs as x}}[{x_index}:{x}:{x_first}:{x_last}]{{/each}}")

    expected = "".join(
        f"[{i}:{item}:{'true' if i == 0 else 'false'}:"
        f"{'true' if i == len(items) - 1 else 'false'}]"
        for i, item in enumerate(items)
    )

    assert template.render({"xs": items}) == expected


@given(
    rows=st.lists(st.lists(st.integers(min_value=0, max_value=99), max_size=4), max_size=4)
)
def test_nested_loops_visit_every_cell(rows: list[list[int]]) -> None:
    """Property: nested loops visit each inner item in order."""
    template = Template(
        "{{#each rows as row}}{{#each row.cells as cell}}{cell},{{/each}};{{/each}}"
    )
    bindings = {"rows": [{"cells": cells} for cells in rows]}

    expected = "".join("".join(f"{cell}," for cell in cells) + ";" for cells in rows)

    assert template.render(bindings) == expected


# =============================================================================
# Conditional Properties
# =============================================================================


@given(a=st.integers(), b=st.integers())
def test_conditional_takes_exactly_one_branch(a: int, b: int) -> None:
    """Property: a conditional renders exactly the branch its condition selects."""
    template = Template("{{#if a > b}}T{{#else}}F{{/if}}")

    assert template.render({"a": a, "b": b}) == ("T" if a > b else "F")


@given(flag=st.booleans(), text=text_value)
def test_untaken_branch_is_not_evaluated(flag: bool, text: str) -> None:
    """Property: the untaken branch may reference unbound names."""
    template = Template("{{#if flag}}{text}{{#else}}{missing}{{/if}}")

    if flag:
        assert template.render({"flag": flag, "text": text}) == text
    else:
        assert template.render({"flag": flag, "missing": text}) == text
