from glslpack.blending import (
    AlphaTest,
    AlphaTestFunction,
    BlendFactor,
    BlendMode,
    BlendModeOverride,
)
from glslpack.config import PackConfig
from glslpack.errors import (
    InputRejected,
    MalformedDirective,
    PreprocessFailed,
    ShaderPackError,
    UnknownRenderTarget,
)
from glslpack.models import (
    CommentDirective,
    CommentDirectiveType,
    ConstDirective,
    ConstType,
    ProgramSource,
    StageKind,
    StageSource,
)
from glslpack.pack import DictAssetProvider, DirectoryAssetProvider, ShaderPack
from glslpack.preprocessor import glsl_preprocess_source, preprocess_source
from glslpack.program import ProgramDirectives, resolve_program_directives
from glslpack.program_config import ProgramConfiguration, build_program_configuration
from glslpack.properties import ShaderProperties

__version__ = "0.1.0"


__all__ = [
    "AlphaTest",
    "AlphaTestFunction",
    "BlendFactor",
    "BlendMode",
    "BlendModeOverride",
    "CommentDirective",
    "CommentDirectiveType",
    "ConstDirective",
    "ConstType",
    "DictAssetProvider",
    "DirectoryAssetProvider",
    "InputRejected",
    "MalformedDirective",
    "PackConfig",
    "PreprocessFailed",
    "ProgramConfiguration",
    "ProgramDirectives",
    "ProgramSource",
    "ShaderPack",
    "ShaderPackError",
    "ShaderProperties",
    "StageKind",
    "StageSource",
    "UnknownRenderTarget",
    "build_program_configuration",
    "glsl_preprocess_source",
    "preprocess_source",
    "resolve_program_directives",
]
