__all__ = ['models', 'flags', 'polyglot', 'composer', 'lint', 'schema', 'config', 'ai_service', 'delivery', 'cli']

from .models import BuildConfig, BuildContext, ConfigError, OutputType, ProjectMetadata, TargetArch

from .flags import CompilerFlags, derive_flags, output_stem, sanitize_name

from .composer import ComposeNote, audit, compose, compose_context, split_artifact, suggested_filename

from .lint import LintNote, lint_artifact, lint_preamble
