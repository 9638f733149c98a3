"""Lexer for filter expressions."""

import re

import ply.lex as lex


class ScriptLexer:
    """Tokenizer for the JavaScript subset accepted in filter expressions."""

    reserved = {
        "function": "FUNCTION",
        "return": "RETURN",
        "if": "IF",
        "else": "ELSE",
        "let": "LET",
        "const": "CONST",
        "var": "VAR",
        "for": "FOR",
        "of": "OF",
        "while": "WHILE",
        "break": "BREAK",
        "continue": "CONTINUE",
        "throw": "THROW",
        "true": "TRUE",
        "false": "FALSE",
        "null": "NULL",
        "typeof": "TYPEOF",
    }

    tokens = [
        "NUMBER",
        "STRING",
        "IDENT",
        "ARROW",
        "SEQ",
        "SNE",
        "EQ",
        "NE",
        "LE",
        "GE",
        "LT",
        "GT",
        "URSHIFT",
        "RSHIFT",
        "LSHIFT",
        "ANDAND",
        "OROR",
        "AMP",
        "PIPE",
        "CARET",
        "TILDE",
        "NOT",
        "PLUSEQ",
        "MINUSEQ",
        "ASSIGN",
        "PLUS",
        "MINUS",
        "TIMES",
        "DIVIDE",
        "MOD",
        "QUESTION",
        "COLON",
        "DOT",
        "COMMA",
        "SEMI",
        "LPAREN",
        "RPAREN",
        "LBRACKET",
        "RBRACKET",
        "LBRACE",
        "RBRACE",
    ] + list(reserved.values())

    # PLY sorts string-defined tokens longest regex first
    t_ARROW = r"=>"
    t_SEQ = r"==="
    t_SNE = r"!=="
    t_EQ = r"=="
    t_NE = r"!="
    t_LE = r"<="
    t_GE = r">="
    t_URSHIFT = r">>>"
    t_RSHIFT = r">>"
    t_LSHIFT = r"<<"
    t_LT = r"<"
    t_GT = r">"
    t_ANDAND = r"&&"
    t_OROR = r"\|\|"
    t_AMP = r"&"
    t_PIPE = r"\|"
    t_CARET = r"\^"
    t_TILDE = r"~"
    t_NOT = r"!"
    t_PLUSEQ = r"\+="
    t_MINUSEQ = r"-="
    t_ASSIGN = r"="
    t_PLUS = r"\+"
    t_MINUS = r"-"
    t_TIMES = r"\*"
    t_DIVIDE = r"/"
    t_MOD = r"%"
    t_QUESTION = r"\?"
    t_COLON = r":"
    t_DOT = r"\."
    t_COMMA = r","
    t_SEMI = r";"
    t_LPAREN = r"\("
    t_RPAREN = r"\)"
    t_LBRACKET = r"\["
    t_RBRACKET = r"\]"
    t_LBRACE = r"\{"
    t_RBRACE = r"\}"

    t_ignore = " \t\r"

    _ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}
    _ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|.)", re.DOTALL)

    def __init__(self):
        self.lexer = None

    # Function rules are tried in definition order, before the string rules

    def t_BLOCK_COMMENT(self, t):
        r"/\*(.|\n)*?\*/"
        t.lexer.lineno += t.value.count("\n")

    def t_LINE_COMMENT(self, t):
        r"//[^\n]*"
        pass

    def t_NUMBER(self, t):
        r"0[xX][0-9a-fA-F]+|(\d+\.\d+|\.\d+|\d+)([eE][+-]?\d+)?"
        text = t.value
        if text[:2] in ("0x", "0X"):
            t.value = int(text, 16)
        elif "." in text or "e" in text or "E" in text:
            t.value = float(text)
        else:
            t.value = int(text)
        return t

    def t_STRING(self, t):
        r""""([^"\\\n]|\\.)*"|'([^'\\\n]|\\.)*'"""
        t.value = self._ESCAPE_RE.sub(self._unescape, t.value[1:-1])
        return t

    def t_IDENT(self, t):
        r"[A-Za-z_$][A-Za-z0-9_$]*"
        t.type = self.reserved.get(t.value, "IDENT")
        return t

    def t_newline(self, t):
        r"\n+"
        t.lexer.lineno += len(t.value)

    def t_error(self, t):
        raise SyntaxError("Illegal character '{}' at line {}".format(t.value[0], t.lexer.lineno))

    @classmethod
    def _unescape(cls, match):
        code = match.group(1)
        if len(code) > 1:
            return chr(int(code[1:], 16))
        return cls._ESCAPES.get(code, code)

    def build(self, **kwargs):
        self.lexer = lex.lex(module=self, **kwargs)

    def tokenize(self, data):
        """Tokenize the input and return all tokens."""
        lexer = self.lexer.clone()
        lexer.input(data)
        return list(iter(lexer.token, None))
