"""
Module Transform Stage: runs the Transformer over every module in parallel.
"""

import os
from concurrent.futures import ThreadPoolExecutor, as_completed

from bundler.errors import TransformError
from bundler.models import ModuleTable


def default_workers():
    return os.cpu_count() or 1


class TransformStage:
    """
    Thread-pool map of ``transformer.transform`` over a module table.

    Results come back in completion order; each future is mapped back to the
    module it was submitted for, never matched by position.
    """

    def __init__(self, transformer, max_workers=None, on_module=None):
        self.transformer = transformer
        self.max_workers = max_workers or default_workers()
        self.on_module = on_module  # called with (module, result) as each finishes

    def run(self, table: ModuleTable) -> ModuleTable:
        """
        Return a new table whose modules all carry ``transformed_source``.

        Raises:
            TransformError: For the first module whose transform fails; the
                remaining queued work is cancelled and nothing is returned
        """
        transformed = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_module = {
                executor.submit(self.transformer.transform, module.raw_source): module
                for module in table.ordered()
            }
            for future in as_completed(future_to_module):
                module = future_to_module[future]
                try:
                    result = future.result()
                except Exception as e:
                    _cancel(future_to_module)
                    raise TransformError(module.path, f"Transformer crashed: {e}") from e
                if not result.ok:
                    _cancel(future_to_module)
                    raise TransformError(module.path, result.error_message)
                if self.on_module:
                    self.on_module(module, result)
                transformed.append(module.model_copy(update={"transformed_source": result.code}))

        return table.replace(transformed)


def _cancel(future_to_module):
    for future in future_to_module:
        future.cancel()
