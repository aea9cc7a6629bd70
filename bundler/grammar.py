"""
JavaScript token grammar.

This is not a full JavaScript grammar. It only describes a token stream, as two
alternating states: ``expecting`` (an operand may start here) and ``completed``
(an operand just ended). With lark's contextual lexer that is enough to tell a
regular-expression literal from a division operator, which is the one place
where JavaScript cannot be tokenized without context. Comments, whitespace and
a hashbang line are dropped, so everything the scanner sees is real code.
"""

js_token_grammar = r"""
    start: (expecting | completed)?

    expecting: (expecting | completed)? (PUNCT | KEYWORD)
             | expecting? INCDEC
             | completed DIV
             | (expecting | completed)? CONTROL condition

    completed: expecting? (NAME | NUMBER | STRING | TEMPLATE | REGEX | RSQB | group)
             | completed (NAME | NUMBER | STRING | TEMPLATE | RSQB | INCDEC | group)

    // The same parentheses, kept apart so that after `if (x)` a regex may follow
    group: LPAR (expecting | completed)? RPAR
    condition: LPAR (expecting | completed)? RPAR

    // --- Operand tokens ---
    KEYWORD.2: /(?:return|typeof|instanceof|in|new|delete|void|throw|case|do|else|extends)(?![\w$])/
    CONTROL.2: /(?<![.\w$])(?:if|while|for|with)(?=\s*\()/
    NAME: /#?(?:[^\W\d]|\$)[\w$]*/
    NUMBER: /(?:0[xX][0-9a-fA-F_]+|0[bB][01_]+|0[oO][0-7_]+|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d[\d_]*)?)n?/
    STRING: /"(?:[^"\\\n]|\\[\s\S])*"|'(?:[^'\\\n]|\\[\s\S])*'/
    TEMPLATE: /`(?:[^`\\]|\\[\s\S])*`/
    REGEX: /\/(?![*\/])(?:[^\/\\\[\n]|\\.|\[(?:[^\]\\\n]|\\.)*\])+\/[A-Za-z]*/
    LPAR: "("
    RPAR: ")"
    RSQB: "]"

    // --- Operators and punctuation ---
    DIV: /\/=?/
    INCDEC.2: "++" | "--"
    PUNCT: /[{}\[;,<>=!+\-*%&|^~?:.@\\]/

    // --- Ignored ---
    COMMENT.3: /\/\/[^\n]*|\/\*[\s\S]*?\*\//
    HASHBANG.3: /#![^\n]*/
    WS: /[\s\ufeff]+/

    %ignore WS
    %ignore COMMENT
    %ignore HASHBANG
"""
