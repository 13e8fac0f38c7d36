import pytest
from hypothesis import given
from hypothesis import strategies as st

from minilang.minilang_constants import KEYWORDS, SYMBOLS, TerminalKind
from minilang.minilang_errors import (
    CompilationError,
    LexicalError,
    SemanticAnalysisError,
    SyntaxAnalysisError,
)
from minilang.minilang_generate import Generate
from minilang.minilang_lexer import CharacterStream, Lexer, Token, TokenListSource
from minilang.minilang_parser import SyntaxAnalyser, TokenCursor, analyse_source
from minilang.minilang_symbols import VariableType


def make_analyser(source: str) -> tuple[SyntaxAnalyser, Generate]:
    generate = Generate()
    return SyntaxAnalyser(Lexer(CharacterStream(source)), generate), generate


def failure(source: str) -> CompilationError:
    with pytest.raises(CompilationError) as excinfo:
        analyse_source(source)
    return excinfo.value


def types_of(generate: Generate) -> dict[str, str]:
    return generate.registry.snapshot()


# Accepted programs

WELL_FORMED = [
    "begin x := 1 end",
    "begin x := 1; y := x + 2; end",
    'begin s := "text"; t := s + s end',
    "begin a := 1; b := (a + 2) * 3 - a / 4 end",
    "begin x := 1; if x > 1 then y := 2 end if end",
    "begin x := 1; if x /= 2 then y := 1 else y := 2; z := 3 end if end",
    "begin n := 0; while n < 10 loop n := n + 1 end loop end",
    "begin n := 0; do n := n + 1 until n >= 10 end",
    'begin a := 1; b := "s"; call print(a, b, a) end',
    "begin for (i := 0; i <= 9; i := i + 1) do x := i * 2 end loop end",
    'begin s := "a"; if s = "a" then t := 1 end if end',
    "begin x := 1; if x < x then call f(x) end if end",
    "begin\n  -- comment\n  x := 1.5;\n  y := x\nend\n",
]


@pytest.mark.parametrize("source", WELL_FORMED)  # type: ignore[misc]
def test_well_formed_programs_parse_with_balanced_trace(source: str) -> None:
    generate = analyse_source(source)
    assert generate.is_balanced()
    assert generate.errors == []
    assert generate.terminals()[-1].symbol is TerminalKind.END
    assert generate.render().splitlines()[-1] == "end StatementPart"


def test_simple_program_registry() -> None:
    generate = analyse_source("begin x := 1; y := x + 2; end")
    assert types_of(generate) == {"x": "Number", "y": "Number"}


def test_exact_trace_of_single_assignment() -> None:
    generate = analyse_source("begin x := 1 end")
    rules = [
        "StatementPart",
        "StatementList",
        "Statement",
        "AssignmentStatement",
        "Expression",
        "Term",
        "Factor",
    ]
    assert generate.nonterminals() == [("commence", r) for r in rules] + [
        ("finish", r) for r in reversed(rules)
    ]
    assert [t.text for t in generate.terminals()] == ["begin", "x", ":=", "1", "end"]
    lines = generate.render().splitlines()
    assert lines[:3] == ["begin StatementPart", "  terminal 'begin' ('begin')", "  begin StatementList"]
    assert "        DECL x: Number" in lines


def test_string_assignment_declares_string() -> None:
    generate = analyse_source('begin greeting := "hi" end')
    assert types_of(generate) == {"greeting": "String"}


def test_trailing_semicolon_before_end() -> None:
    generate = analyse_source("begin x := 1; end")
    assert types_of(generate) == {"x": "Number"}


def test_procedure_name_need_not_be_declared() -> None:
    generate = analyse_source("begin x := 1; call undeclared_proc(x) end")
    assert "undeclared_proc" not in generate.registry


# Syntax errors


def test_missing_end_if() -> None:
    error = failure("begin x := 5; if x > 1 then y := 2 end")
    assert isinstance(error, SyntaxAnalysisError)
    assert error.root.message == "<string>:1: found '' (end of file), expected 'if'"
    assert error.rule_trace()[-1] == "IfStatement"


def test_syntax_error_line_number() -> None:
    error = failure("begin\n  x := 1\n  x := 2\nend")
    assert isinstance(error, SyntaxAnalysisError)
    assert error.line == 3
    assert "found 'x' (identifier), expected 'end'" in error.root.message
    assert error.root.message.startswith("<string>:3:")


@given(
    st.sampled_from(
        sorted(set(KEYWORDS) - {"begin"}) + sorted(SYMBOLS) + ["x", "12", '"s"']
    )
)  # type: ignore[misc]
def test_wrong_first_token_names_found_and_expected(spelling: str) -> None:
    found = Lexer(CharacterStream(spelling)).next_token()
    error = failure(f"{spelling} x := 1 end")
    assert isinstance(error, SyntaxAnalysisError)
    assert f"found '{found.text}' ({found.symbol}), expected 'begin'" in error.message


def test_empty_statement_list() -> None:
    error = failure("begin end")
    assert "found 'end' ('end'), expected a statement" in error.root.message
    assert error.rule_trace() == ["StatementPart", "StatementList", "Statement"]


def test_tokens_after_end() -> None:
    error = failure("begin x := 1 end end")
    assert "expected end of file" in error.root.message
    assert isinstance(error, SyntaxAnalysisError)
    assert error.rule_trace() == []


def test_missing_conditional_operator() -> None:
    error = failure("begin x := 1; while x loop x := 2 end loop end")
    assert "expected a conditional operator" in error.root.message
    assert error.rule_trace()[-2:] == ["Condition", "ConditionalOperator"]


def test_condition_right_operand_must_be_simple() -> None:
    error = failure("begin x := 1; while x > then x := 2 end loop end")
    assert "found 'then' ('then'), expected identifier/numberConstant/stringConstant" in error.root.message


def test_factor_rejects_string_constant() -> None:
    error = failure('begin x := 1 + "a" end')
    assert isinstance(error, SyntaxAnalysisError)
    assert "expected an identifier, numberConstant or ( expression )" in error.root.message


def test_unclosed_parenthesis() -> None:
    error = failure("begin x := (1 + 2 end")
    assert "expected ')'" in error.root.message
    assert error.rule_trace()[-1] == "Factor"


def test_empty_argument_list() -> None:
    error = failure("begin call f() end")
    assert "found ')' (')'), expected identifier" in error.root.message


def test_illegal_symbol_is_a_syntax_error() -> None:
    error = failure("begin x := 1 ? end")
    assert isinstance(error, SyntaxAnalysisError)
    assert "found '?' (illegal symbol), expected 'end'" in error.root.message


def test_lexical_error_propagates() -> None:
    error = failure('begin x := "abc\nend')
    assert isinstance(error, LexicalError)


def test_mismatch_does_not_advance() -> None:
    analyser, generate = make_analyser("begin x := 1 y := 2 end")
    with pytest.raises(SyntaxAnalysisError):
        analyser.parse()
    assert analyser.lookahead == Token(TerminalKind.IDENTIFIER, "y", 1)
    assert len(generate.errors) == 1
    assert [t.text for t in generate.terminals()] == ["begin", "x", ":=", "1"]


def test_accept_terminal_over_token_list() -> None:
    source = TokenListSource(
        [Token(TerminalKind.CALL, "call", 2), Token(TerminalKind.IDENTIFIER, "f", 2)],
        filename="unit",
    )
    analyser = SyntaxAnalyser(source)
    analyser.cursor = TokenCursor(source)
    assert analyser.accept_terminal(TerminalKind.CALL).text == "call"
    with pytest.raises(SyntaxAnalysisError, match=r"^unit:2: found 'f' \(identifier\), expected '\('$"):
        analyser.accept_terminal(TerminalKind.LEFT_PARENTHESIS)
    assert analyser.lookahead.text == "f"


def test_parse_only_once() -> None:
    analyser, _ = make_analyser("begin x := 1 end")
    analyser.parse()
    with pytest.raises(RuntimeError):
        analyser.parse()


def test_lookahead_before_parse() -> None:
    analyser, _ = make_analyser("begin x := 1 end")
    with pytest.raises(RuntimeError):
        analyser.lookahead


def test_failed_parse_leaves_trace_unbalanced() -> None:
    analyser, generate = make_analyser("begin x := end")
    with pytest.raises(CompilationError):
        analyser.parse()
    assert not generate.is_balanced()
    assert len(generate.errors) == 1


# Declarations


def test_undeclared_identifier_stops_before_consuming_it() -> None:
    analyser, generate = make_analyser("begin y := x + 1 end")
    with pytest.raises(SemanticAnalysisError) as excinfo:
        analyser.parse()
    assert "found 'x' (identifier), 'x' is not declared" in excinfo.value.root.message
    assert [t.text for t in generate.terminals()] == ["begin", "y", ":="]
    assert excinfo.value.rule_trace()[-3:] == ["Expression", "Term", "Factor"]


def test_assignment_target_not_visible_in_its_own_expression() -> None:
    error = failure("begin x := x + 1 end")
    assert isinstance(error, SemanticAnalysisError)


@pytest.mark.parametrize(
    "source",
    [
        "begin while n < 1 loop n := 1 end loop end",
        "begin n := 1; if n = m then n := 2 end if end",
        "begin a := 1; call p(a, b) end",
    ],
)  # type: ignore[misc]
def test_undeclared_in_conditions_and_arguments(source: str) -> None:
    error = failure(source)
    assert isinstance(error, SemanticAnalysisError)
    assert "is not declared" in error.root.message


def test_redeclaration_keeps_first_type() -> None:
    generate = analyse_source('begin x := 1; x := "a" end')
    assert generate.get_variable("x").type is VariableType.NUMBER  # type: ignore[union-attr]
    generate = analyse_source('begin x := "a"; x := 1 end')
    assert generate.get_variable("x").type is VariableType.STRING  # type: ignore[union-attr]


def test_redeclared_type_still_governs_arithmetic() -> None:
    error = failure('begin x := "a"; x := 1; y := x * 2 end')
    assert isinstance(error, SemanticAnalysisError)


# Operand types

PRELUDE = 'begin s := "a"; t := "b"; n := 1; m := 2; r := '


@pytest.mark.parametrize(
    "expr,result",
    [
        ("s + t", "String"),
        ("s + t + s", "String"),
        ("n + 2", "Number"),
        ("n - m * 3 / (n + m)", "Number"),
        ("(s + t)", "String"),
    ],
)  # type: ignore[misc]
def test_compatible_arithmetic(expr: str, result: str) -> None:
    generate = analyse_source(PRELUDE + expr + " end")
    assert types_of(generate)["r"] == result


@pytest.mark.parametrize(
    "expr,fragment",
    [
        ("s + n", "incompatible types String and Number for '+'"),
        ("n + s", "incompatible types Number and String for '+'"),
        ("s - t", "incompatible types String and String for '-'"),
        ("n - s", "incompatible types Number and String for '-'"),
        ("n * s", "cannot apply '*' to a String right operand"),
        ("s / n", "cannot apply '/' to a String left operand"),
        ("(s + t) * n", "cannot apply '*' to a String left operand"),
        ("n + t + s", "incompatible types Number and String for '+'"),
        ("s + t - n", "incompatible types String and Number for '-'"),
    ],
)  # type: ignore[misc]
def test_incompatible_arithmetic(expr: str, fragment: str) -> None:
    error = failure(PRELUDE + expr + " end")
    assert isinstance(error, SemanticAnalysisError)
    assert fragment in error.root.message


def test_string_plus_number_scenario() -> None:
    error = failure('begin x := "a"; y := x + 1; end')
    assert isinstance(error, SemanticAnalysisError)
    assert "String and Number for '+'" in error.root.message
    assert error.rule_trace()[-2:] == ["AssignmentStatement", "Expression"]


def test_comparisons_are_not_type_checked() -> None:
    generate = analyse_source('begin s := "a"; n := 1; while s < n loop n := 2 end loop; if n = "x" then s := "b" end if end')
    assert generate.is_balanced()


@given(
    st.recursive(
        st.sampled_from(["a", "b", "c", "0", "7", "42"]),
        lambda inner: st.one_of(
            st.tuples(inner, st.sampled_from(["+", "-", "*", "/"]), inner).map(" ".join),
            inner.map(lambda e: f"( {e} )"),
        ),
        max_leaves=8,
    )
)  # type: ignore[misc]
def test_numeric_expressions_are_numbers(expr: str) -> None:
    generate = analyse_source(f"begin a := 1; b := 2; c := 3; r := {expr} end")
    assert generate.is_balanced()
    assert types_of(generate)["r"] == "Number"


@given(
    parts=st.lists(st.sampled_from(["s", "t"]), min_size=1, max_size=6),
    position=st.integers(min_value=0, max_value=6),
)  # type: ignore[misc]
def test_number_anywhere_in_concatenation_is_rejected(parts: list[str], position: int) -> None:
    generate = analyse_source(PRELUDE + " + ".join(parts) + " end")
    assert types_of(generate)["r"] == "String"

    mixed = list(parts)
    mixed.insert(min(position, len(mixed)), "n")
    with pytest.raises(SemanticAnalysisError):
        analyse_source(PRELUDE + " + ".join(mixed) + " end")


# For-loop scoping


def test_for_control_variable_dropped_after_loop() -> None:
    generate = analyse_source("begin for (i := 0; i < 10; i := i + 1) do x := i end loop end")
    assert generate.get_variable("i") is None
    assert types_of(generate) == {"x": "Number"}
    assert "DROP i" in generate.render()


def test_for_keeps_preexisting_variable() -> None:
    generate = analyse_source(
        "begin i := 5; for (i := 0; i < 10; i := i + 1) do x := i end loop end"
    )
    declared = [e.value for e in generate.events if e.kind == "declare"]
    assert generate.get_variable("i") is declared[0]
    assert generate.get_variable("i").type is VariableType.NUMBER  # type: ignore[union-attr]
    assert "DROP" not in generate.render()


def test_for_keeps_preexisting_string_variable() -> None:
    generate = analyse_source(
        'begin i := "s"; for (i := 0; i < 10; i := 0) do x := 1 end loop end'
    )
    assert generate.get_variable("i").type is VariableType.STRING  # type: ignore[union-attr]


def test_for_drops_both_header_variables() -> None:
    generate = analyse_source("begin for (i := 0; i < 3; j := i + 1) do x := j end loop end")
    assert generate.get_variable("i") is None
    assert generate.get_variable("j") is None


def test_nested_for_reusing_control_variable() -> None:
    generate = analyse_source(
        "begin for (i := 0; i < 3; i := i + 1) do "
        "for (i := 0; i < 2; i := i + 1) do x := i end loop; y := i "
        "end loop end"
    )
    assert types_of(generate) == {"x": "Number", "y": "Number"}


def test_control_variable_not_visible_after_loop() -> None:
    error = failure("begin for (i := 0; i < 3; i := i + 1) do x := i end loop; z := i end")
    assert isinstance(error, SemanticAnalysisError)
    assert "'i' is not declared" in error.root.message


def test_echo_trace(capsys: pytest.CaptureFixture[str]) -> None:
    analyse_source("begin x := 1 end", echo=True)
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "begin StatementPart"
    assert out[-1] == "end StatementPart"


def test_end_of_file_is_not_traced() -> None:
    generate = analyse_source("begin x := 1 end")
    assert TerminalKind.END_OF_FILE not in {t.symbol for t in generate.terminals()}
    assert generate.events[-1].kind == "finish"
    assert generate.events[-1].value == "StatementPart"
