
"""Coalescência por janela de inatividade + guarda de sequência (asyncio).

- Cada pedido recebe um número de sequência crescente (issue()).
- settle(seq) espera a janela de INATIVIDADE (window_ms). Se um pedido mais novo chegar
  nesse meio tempo, o antigo é descartado sem executar (debounce).
- Limite opcional de espera máx (max_wait_ms): numa rajada contínua, o pedido mais
  recente no prazo executa mesmo sem silêncio.
- is_latest(seq) decide, na chegada do resultado, se ele ainda pode ser aplicado
  (last-writer-wins pela ordem de emissão, não de chegada).
"""
from __future__ import annotations
import asyncio

class Coalescer:
    def __init__(self, window_ms: int, max_wait_ms: int | None = None):
        self.window_ms = window_ms
        self.max_wait_ms = max_wait_ms
        self._seq = 0
        self._burst_started: float | None = None

    @property
    def latest(self) -> int:
        return self._seq

    def issue(self) -> int:
        """Registra um novo pedido e retorna seu número de sequência."""
        self._seq += 1
        if self._burst_started is None:
            self._burst_started = asyncio.get_running_loop().time()
        return self._seq

    def is_latest(self, seq: int) -> bool:
        return seq == self._seq

    async def settle(self, seq: int) -> bool:
        """Espera a janela; True se `seq` continua sendo o último pedido e deve executar."""
        if self.window_ms > 0:
            delay = self.window_ms / 1000.0
            if self.max_wait_ms is not None and self._burst_started is not None:
                deadline = self._burst_started + self.max_wait_ms / 1000.0
                delay = min(delay, max(0.0, deadline - asyncio.get_running_loop().time()))
            await asyncio.sleep(delay)
        if not self.is_latest(seq):
            return False
        self._burst_started = None
        return True
