"""FinalizeGuard — flag atomico de "ja finalizado" por sessao."""

from __future__ import annotations

import threading


class FinalizeGuard:
    """Permite que exatamente um caminho de encerramento finalize a sessao.

    ``claim()`` retorna True apenas na primeira chamada. Protegido por lock
    porque recognizers rodam em threads do executor e podem disparar
    encerramentos fora do event loop.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._claimed_by: str | None = None

    @property
    def claimed(self) -> bool:
        with self._lock:
            return self._claimed_by is not None

    @property
    def claimed_by(self) -> str | None:
        """Nome do caminho que finalizou a sessao (ex: "end", "error")."""
        with self._lock:
            return self._claimed_by

    def claim(self, path: str) -> bool:
        with self._lock:
            if self._claimed_by is not None:
                return False
            self._claimed_by = path
            return True
