# gabvm

`gabvm` provides the pieces of a small scripting language: a lexer, a
syntax tree with symbol resolution, a code generator and a
register-based bytecode virtual machine. It is pure Python with no
runtime dependencies.

The language's tokens cover numbers, identifiers, the keywords `let`,
`if`, `else` and `return`, the arithmetic operators `+ - * /`, the
comparisons `< > == != <= >=`, `=`, `!`, parentheses, braces and `;`.
The syntax tree covers expression statements, `let` declarations (with
or without an initializer), assignment, blocks, `if` / `else` and
`return`.

## Modules

| Module | Purpose |
| --- | --- |
| `gabvm.lexer` | `Lexer`, `Token` and `TokenType`: turns source text into tokens |
| `gabvm.syntax` | Tree nodes (`LiteralExpr`, `BinOpExpr`, `VariableExpr`, `ExprStmt`, `VarDeclStmt`, `AssignStmt`, `IfStmt`, `BlockStmt`, `ReturnStmt`), `BinOp`, `Script` and `ResolveError` |
| `gabvm.symbol_table` | `SymbolTable`: a chained hash table of names and their registers |
| `gabvm.scope` | `Scope`: symbol tables chained to a parent, with a register counter |
| `gabvm.constant_pool` | `Variant` values and the `ConstantPool` of a chunk |
| `gabvm.instruction` | `OpCode` and the 32-bit R-type and I-type instruction encoding |
| `gabvm.codegen` | `generate(script)` and `CodegenError` |
| `gabvm.vm` | `Chunk` (instructions plus constants) and the `VM` that runs it |

## Tokenizing

`Lexer.next_token()` returns one token at a time; iterating a `Lexer`
yields the remaining tokens, ending with the `TokenType.EOF` token:

```python
from gabvm.lexer import Lexer

for token in Lexer("let x = 3.5;"):
    print(token.type, token.lexeme)
```

A character that is not part of the language gives a
`TokenType.INVALID` token instead of stopping the lexer.

## Building, compiling and running a script

Scripts are built from the node classes in `gabvm.syntax`.
`Script.resolve_symbols()` gives every `let` its own register, in
declaration order, and binds each `VariableExpr` to it. `generate`
compiles the resolved script into a `Chunk`, and `VM.execute(chunk)`
runs it and returns the value of the first `return` reached (or the
previous result, `None` on a fresh machine, if none is reached).

```python
from gabvm.codegen import generate
from gabvm.constant_pool import Variant
from gabvm.syntax import (
    BinOp,
    BinOpExpr,
    BlockStmt,
    IfStmt,
    LiteralExpr,
    ReturnStmt,
    Script,
)
from gabvm.vm import VM

condition = BinOpExpr(
    LiteralExpr(Variant.number(10)),
    BinOp.GREATER,
    LiteralExpr(Variant.number(5)),
)
then_block = BlockStmt([ReturnStmt(LiteralExpr(Variant.number(1)))])
else_block = BlockStmt([ReturnStmt(LiteralExpr(Variant.number(0)))])

script = Script()
script.add_statement(IfStmt(condition, then_block, else_block))
script.resolve_symbols()

chunk = generate(script)
result = VM().execute(chunk)   # Variant(type=VariantType.NUMBER, value=1.0)
```

Errors:

* `ResolveError` from `Script.resolve_symbols()` when a variable is used
  without being declared, or a name is declared twice.
* `CodegenError` from `generate` when a variable or declaration has not
  been resolved, or when the machine's 127 registers run out.
* `OverflowError` from `ConstantPool.add` when the pool is full.

A `VM` keeps its registers between calls to `execute`.

## Values and arithmetic

`Variant.number(x)` stores `x` rounded to a single-precision float;
`Variant.boolean(b)` stores a boolean. Arithmetic results are rounded
the same way. Division by zero gives an infinity, or NaN for `0 / 0`.
The `>=` comparison (`OpCode.CMP_GE`) is evaluated with the same test
as `<=`.

## Instruction format

Each instruction is a 32-bit integer whose top 6 bits hold the opcode.

* R-type: destination register and two source registers, 7 bits each,
  plus 5 unused flag bits.
* I-type: destination register (7 bits) and a 19-bit constant index or
  forward jump offset.

`encode_r`, `encode_i`, `decode_opcode`, `decode_r` and `decode_i` in
`gabvm.instruction` build and take apart instructions, which is useful
for inspecting `chunk.instructions` after `generate`.

## What the package does not do

* There is no parser: nothing turns the lexer's tokens into a `Script`.
  Trees must be built from the node classes directly.
* There is no command-line tool and no way to run source text in one
  call.
* `Scope` is a standalone helper; `generate` does not use it, and
  scripts have a single flat namespace.