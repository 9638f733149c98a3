"""Parser for filter expressions."""

import threading

import ply.yacc as yacc

from bamscript.lexer import ScriptLexer
from bamscript.nodes import (
    Arrow, ArrayLiteral, Assign, Binary, Block, Break, Call, Conditional, Continue, Declare, ExprStatement,
    ForOf, FunctionDecl, If, Index, Literal, Logical, Member, Name, Program, Return, Throw, Unary, While,
)


class RuleError(Exception):
    """ Raised by grammar rules; PLY reserves SyntaxError there for error recovery. """


class ScriptParser:
    """LALR parser turning script source into a `Program` tree.

    Building the tables is the expensive step and happens once, see `bamscript.runtime.bootstrap`.
    A built parser may be shared; `parse` serializes callers because PLY keeps parse state on the parser object.
    """

    tokens = ScriptLexer.tokens

    precedence = (
        ("right", "ARROW"),
        ("right", "ASSIGN", "PLUSEQ", "MINUSEQ"),
        ("right", "QUESTION", "COLON"),
        ("left", "OROR"),
        ("left", "ANDAND"),
        ("left", "PIPE"),
        ("left", "CARET"),
        ("left", "AMP"),
        ("left", "EQ", "NE", "SEQ", "SNE"),
        ("left", "LT", "LE", "GT", "GE"),
        ("left", "LSHIFT", "RSHIFT", "URSHIFT"),
        ("left", "PLUS", "MINUS"),
        ("left", "TIMES", "DIVIDE", "MOD"),
        ("right", "UNARY", "NOT", "TILDE", "TYPEOF"),
        ("left", "DOT", "LBRACKET", "LPAREN"),
        ("nonassoc", "IFX"),
        ("nonassoc", "ELSE"),
    )

    def __init__(self):
        self.lexer = ScriptLexer()
        self.parser = None
        self._lock = threading.Lock()

    # --- Program and statements ---

    def p_program(self, p):
        """program : statement_list"""
        p[0] = Program(body=p[1])

    def p_statement_list(self, p):
        """statement_list : statement_list statement
                          | empty"""
        if len(p) == 2:
            p[0] = []
        else:
            p[0] = p[1] + [p[2]]

    def p_statement_function(self, p):
        """statement : FUNCTION IDENT LPAREN params RPAREN LBRACE statement_list RBRACE"""
        p[0] = FunctionDecl(name=p[2], params=p[4], body=p[7])

    def p_params(self, p):
        """params : param_list
                  | empty"""
        p[0] = p[1] or []

    def p_param_list(self, p):
        """param_list : param_list COMMA IDENT
                      | IDENT"""
        if len(p) == 2:
            p[0] = [p[1]]
        else:
            p[0] = p[1] + [p[3]]

    def p_statement_return(self, p):
        """statement : RETURN expression SEMI
                     | RETURN expression"""
        p[0] = Return(value=p[2])

    def p_statement_return_empty(self, p):
        """statement : RETURN SEMI
                     | RETURN"""
        p[0] = Return()

    def p_statement_if(self, p):
        """statement : IF LPAREN expression RPAREN statement %prec IFX"""
        p[0] = If(test=p[3], then=p[5])

    def p_statement_if_else(self, p):
        """statement : IF LPAREN expression RPAREN statement ELSE statement"""
        p[0] = If(test=p[3], then=p[5], otherwise=p[7])

    def p_statement_declare(self, p):
        """statement : declaration SEMI
                     | declaration"""
        p[0] = p[1]

    def p_declaration(self, p):
        """declaration : decl_kind IDENT ASSIGN expression
                       | decl_kind IDENT"""
        value = p[4] if len(p) == 5 else None
        if p[1] == "const" and value is None:
            raise RuleError("Missing initializer in const declaration '{}'".format(p[2]))
        p[0] = Declare(kind=p[1], name=p[2], value=value)

    def p_decl_kind(self, p):
        """decl_kind : LET
                     | CONST
                     | VAR"""
        p[0] = p[1]

    def p_statement_for_of(self, p):
        """statement : FOR LPAREN decl_kind IDENT OF expression RPAREN statement"""
        p[0] = ForOf(kind=p[3], name=p[4], iterable=p[6], body=p[8])

    def p_statement_while(self, p):
        """statement : WHILE LPAREN expression RPAREN statement"""
        p[0] = While(test=p[3], body=p[5])

    def p_statement_break(self, p):
        """statement : BREAK SEMI
                     | BREAK"""
        p[0] = Break()

    def p_statement_continue(self, p):
        """statement : CONTINUE SEMI
                     | CONTINUE"""
        p[0] = Continue()

    def p_statement_throw(self, p):
        """statement : THROW expression SEMI
                     | THROW expression"""
        p[0] = Throw(value=p[2])

    def p_statement_block(self, p):
        """statement : LBRACE statement_list RBRACE"""
        p[0] = Block(body=p[2])

    def p_statement_expression(self, p):
        """statement : expression SEMI
                     | expression"""
        p[0] = ExprStatement(expr=p[1])

    # --- Expressions ---

    def p_expression_binary(self, p):
        """expression : expression PLUS expression
                      | expression MINUS expression
                      | expression TIMES expression
                      | expression DIVIDE expression
                      | expression MOD expression
                      | expression LT expression
                      | expression LE expression
                      | expression GT expression
                      | expression GE expression
                      | expression EQ expression
                      | expression NE expression
                      | expression SEQ expression
                      | expression SNE expression
                      | expression AMP expression
                      | expression PIPE expression
                      | expression CARET expression
                      | expression LSHIFT expression
                      | expression RSHIFT expression
                      | expression URSHIFT expression"""
        p[0] = Binary(op=p[2], left=p[1], right=p[3])

    def p_expression_logical(self, p):
        """expression : expression ANDAND expression
                      | expression OROR expression"""
        p[0] = Logical(op=p[2], left=p[1], right=p[3])

    def p_expression_conditional(self, p):
        """expression : expression QUESTION expression COLON expression"""
        p[0] = Conditional(test=p[1], then=p[3], otherwise=p[5])

    def p_expression_assign(self, p):
        """expression : expression ASSIGN expression
                      | expression PLUSEQ expression
                      | expression MINUSEQ expression"""
        if not isinstance(p[1], (Name, Member, Index)):
            raise RuleError("Invalid left-hand side in assignment")
        p[0] = Assign(op=p[2], target=p[1], value=p[3])

    def p_expression_unary(self, p):
        """expression : MINUS expression %prec UNARY
                      | PLUS expression %prec UNARY
                      | NOT expression
                      | TILDE expression
                      | TYPEOF expression"""
        p[0] = Unary(op=p[1], operand=p[2])

    def p_expression_member(self, p):
        """expression : expression DOT IDENT"""
        p[0] = Member(obj=p[1], name=p[3])

    def p_expression_index(self, p):
        """expression : expression LBRACKET expression RBRACKET"""
        p[0] = Index(obj=p[1], key=p[3])

    def p_expression_call(self, p):
        """expression : expression LPAREN arguments RPAREN"""
        p[0] = Call(callee=p[1], args=p[3])

    @staticmethod
    def _arrow_params(p):
        # (a) is parsed as a parenthesised expression and only becomes a parameter list at the arrow
        if p[1] != "(":
            return [p[1]]
        if p[2] == ")":
            return []
        if p[3] == ",":
            return [p[2]] + p[4]
        if not isinstance(p[2], Name):
            raise RuleError("Malformed arrow function parameter list")
        return [p[2].name]

    def p_expression_arrow(self, p):
        """expression : IDENT ARROW expression
                      | LPAREN RPAREN ARROW expression
                      | LPAREN expression RPAREN ARROW expression
                      | LPAREN IDENT COMMA param_list RPAREN ARROW expression"""
        p[0] = Arrow(params=self._arrow_params(p), body=[Return(value=p[len(p) - 1])])

    def p_expression_arrow_block(self, p):
        """expression : IDENT ARROW LBRACE statement_list RBRACE
                      | LPAREN RPAREN ARROW LBRACE statement_list RBRACE
                      | LPAREN expression RPAREN ARROW LBRACE statement_list RBRACE
                      | LPAREN IDENT COMMA param_list RPAREN ARROW LBRACE statement_list RBRACE"""
        p[0] = Arrow(params=self._arrow_params(p), body=p[len(p) - 2])

    def p_expression_function(self, p):
        """expression : FUNCTION LPAREN params RPAREN LBRACE statement_list RBRACE"""
        p[0] = Arrow(params=p[3], body=p[6])

    def p_expression_group(self, p):
        """expression : LPAREN expression RPAREN"""
        p[0] = p[2]

    def p_expression_array(self, p):
        """expression : LBRACKET arguments RBRACKET"""
        p[0] = ArrayLiteral(items=p[2])

    def p_expression_literal(self, p):
        """expression : NUMBER
                      | STRING"""
        p[0] = Literal(value=p[1])

    def p_expression_true(self, p):
        """expression : TRUE"""
        p[0] = Literal(value=True)

    def p_expression_false(self, p):
        """expression : FALSE"""
        p[0] = Literal(value=False)

    def p_expression_null(self, p):
        """expression : NULL"""
        p[0] = Literal(value=None)

    def p_expression_name(self, p):
        """expression : IDENT"""
        p[0] = Name(name=p[1])

    def p_arguments(self, p):
        """arguments : argument_list
                     | empty"""
        p[0] = p[1] or []

    def p_argument_list(self, p):
        """argument_list : argument_list COMMA expression
                         | expression"""
        if len(p) == 2:
            p[0] = [p[1]]
        else:
            p[0] = p[1] + [p[3]]

    def p_empty(self, p):
        """empty :"""
        p[0] = None

    def p_error(self, p):
        if p:
            raise SyntaxError("Unexpected '{}' at line {}".format(p.value, p.lineno))
        raise SyntaxError("Unexpected end of input")

    def build(self, **kwargs):
        self.lexer.build()
        # Shift/reduce conflicts from optional semicolons resolve to shift, which is what scripts expect
        self.parser = yacc.yacc(module=self, start="program", debug=False, write_tables=False,
                                errorlog=yacc.NullLogger(), **kwargs)

    def parse(self, data):
        """Parse script source into a `Program`. Raises `SyntaxError`."""
        if self.parser is None:
            self.build()
        lexer = self.lexer.lexer.clone()
        lexer.lineno = 1
        with self._lock:
            try:
                return self.parser.parse(data, lexer=lexer)
            except RuleError as exc:
                raise SyntaxError(str(exc)) from None
