"""LangFuse tracing fragments added when tracing is enabled."""

from typing import List

from .fragments import CodeFragment, FragmentKind, GenerationContext

TRACING_HANDLER = "langfuse_handler"
TRACING_ENV_VARS = ("LANGFUSE_PUBLIC_KEY", "LANGFUSE_SECRET_KEY", "LANGFUSE_HOST")


def tracing_dependencies(context: GenerationContext) -> List[str]:
    return ["langfuse"] if context.is_python else ["langfuse-langchain"]


def tracing_fragments(context: GenerationContext) -> List[CodeFragment]:
    """Import and construct a LangFuse callback handler shared by all models."""
    deps = tuple(tracing_dependencies(context))
    if context.is_python:
        import_line = "from langfuse.callback import CallbackHandler"
        init_line = f"{TRACING_HANDLER} = CallbackHandler()"
    else:
        import_line = "import { CallbackHandler } from 'langfuse-langchain';"
        init_line = (f"const {TRACING_HANDLER} = new CallbackHandler({{ "
                     "publicKey: process.env.LANGFUSE_PUBLIC_KEY, "
                     "secretKey: process.env.LANGFUSE_SECRET_KEY, "
                     "baseUrl: process.env.LANGFUSE_HOST });")
    meta = {"node_id": None, "exports": [TRACING_HANDLER], "converter": "tracing"}
    return [
        CodeFragment(id="tracing_import", kind=FragmentKind.IMPORT, content=import_line,
                     dependencies=deps, language=context.target_language, metadata=dict(meta, exports=[])),
        CodeFragment(id="tracing_handler", kind=FragmentKind.DECLARATION, content=init_line,
                     dependencies=deps, language=context.target_language, metadata=meta),
    ]
