import pytest

from cargo_group_imports.errors import AmbiguousStatementError
from cargo_group_imports.errors import ParseError
from cargo_group_imports.parser import collect_statements
from cargo_group_imports.parser import path_root
from cargo_group_imports import rules


def test_path_root_skips_leading_separator():
    assert path_root("std::io::Write") == "std"
    assert path_root("::std::io") == "std"
    assert path_root("serde") == "serde"
    assert path_root("") == ""


def test_collect_statements_in_order():
    code = (
        "use std::io;\n"
        "pub mod foo;\n"
        "pub(crate) use crate::bar::{self, Baz};\n"
        "use tokio::*;\n"
        "\n"
        "fn main() {}\n"
    )
    collected = collect_statements(code)
    assert [s.root for s in collected.statements] == ["std", "foo", "crate", "tokio"]
    assert [s.is_module_decl for s in collected.statements] == [False, True, False, False]
    assert collected.statements[2].text == "pub(crate) use crate::bar::{self, Baz};"
    assert collected.statements[1].start == (1, 0)
    assert collected.statements[1].end[0] == 1
    assert collected.module_names == {"foo"}


def test_comments_and_attributes_travel_with_statement():
    code = (
        "use std::fmt;\n"
        "// needed for tests\n"
        "#[cfg(test)]\n"
        "use mockall::automock;\n"
    )
    statement = collect_statements(code).statements[1]
    assert statement.text == "// needed for tests\n#[cfg(test)]\nuse mockall::automock;"
    assert statement.start[0] == 1
    assert statement.end[0] == 3


def test_module_doc_comment_stays_in_place():
    code = "//! Crate docs\nuse std::fmt;\n"
    statement = collect_statements(code).statements[0]
    assert statement.text == "use std::fmt;"
    assert statement.start[0] == 1


def test_inner_attribute_stops_trivia():
    code = "// license\n#![allow(dead_code)]\nuse std::fmt;\n"
    statement = collect_statements(code).statements[0]
    assert statement.text == "use std::fmt;"
    assert statement.start[0] == 2


def test_bodied_module_is_recorded_but_not_collected():
    code = "use std::fmt;\n\nmod tests {\n    use super::*;\n}\n"
    collected = collect_statements(code)
    assert len(collected.statements) == 1
    assert "tests" in collected.module_names


def test_macro_reexport_is_left_out():
    code = (
        "use std::fmt;\n"
        "\n"
        "macro_rules! my_macro {\n"
        "    () => {};\n"
        "}\n"
        "pub use my_macro;\n"
    )
    collected = collect_statements(code)
    assert collected.macro_names == {"my_macro"}
    assert [s.root for s in collected.statements] == ["std"]


def test_statement_sharing_a_line_is_ambiguous():
    with pytest.raises(AmbiguousStatementError) as excinfo:
        collect_statements("use std::fmt; fn main() {}\n")
    assert excinfo.value.lineno == 1


def test_statement_after_code_on_same_line_is_ambiguous():
    with pytest.raises(AmbiguousStatementError):
        collect_statements("mod a {} use std::fmt;\n")


def test_trailing_comment_of_other_code_is_not_attached():
    collected = collect_statements("fn main() {} // entry\nuse std::fmt;\n")
    assert collected.statements[0].text == "use std::fmt;"
    assert collected.statements[0].start[0] == 1


def test_attribute_after_other_code_is_ambiguous():
    with pytest.raises(AmbiguousStatementError) as excinfo:
        collect_statements("use serde::S;\nfn f() {} #[cfg(test)]\nuse std::fmt;\n")
    assert excinfo.value.lineno == 2


def test_trailing_comment_is_ambiguous():
    with pytest.raises(AmbiguousStatementError):
        collect_statements("use std::fmt; // formatting\n")


def test_syntax_error_raises_parse_error():
    with pytest.raises(ParseError):
        collect_statements("use std::{;\nfn main( {}\n")


def test_classify_statements():
    code = (
        "mod local;\n"
        "use std::fmt;\n"
        "use serde::Serialize;\n"
        "use other_crate::Thing;\n"
        "use crate::a;\n"
        "use super::b;\n"
        "use my_crate::c;\n"
        "use self::d;\n"
        "use local::e;\n"
    )
    collected = collect_statements(code)
    results = [
        rules.classify_statement(s, "my_crate", {"my_crate", "other_crate"}, collected.module_names)
        for s in collected.statements
    ]
    assert results == [
        rules.MODULE,
        rules.STD,
        rules.EXTERNAL,
        rules.WORKSPACE,
        rules.CRATE,
        rules.CRATE,
        rules.CRATE,
        rules.MODULE,
        rules.MODULE,
    ]


def test_aliased_import_is_grouped_as_external():
    collected = collect_statements("use std::io::Result as IoResult;\n")
    statement = collected.statements[0]
    assert statement.root == ""
    assert rules.classify_statement(statement, "pkg", set(), collected.module_names) == rules.EXTERNAL


def test_group_statements_keeps_order_and_all_categories():
    collected = collect_statements("use b::x;\nuse std::io;\nuse a::y;\n")
    grouped = rules.group_statements(collected.statements, "pkg", set(), collected.module_names)
    assert list(grouped) == rules.ordered_categories()
    assert [s.root for s in grouped[rules.EXTERNAL]] == ["b", "a"]
    assert grouped[rules.MODULE] == []


def test_category_order():
    assert rules.ordered_categories() == [
        rules.MODULE,
        rules.STD,
        rules.EXTERNAL,
        rules.WORKSPACE,
        rules.CRATE,
    ]
