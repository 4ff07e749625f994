"""
Stockage en mémoire des tokens CSRF à usage unique.

- issue(): génère un token (32 octets aléatoires, hex) valable ttl_seconds
- validate(): lecture destructive, un token n'est valide qu'une seule fois
- sweep(): purge les tokens expirés (appelée périodiquement par le sweeper)

Toutes les lectures/écritures passent par un verrou: deux requêtes concurrentes
sur le même token ne peuvent pas réussir toutes les deux.
"""
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

DEFAULT_TTL_SECONDS = 15 * 60
TOKEN_BYTES = 32


@dataclass(frozen=True)
class CsrfTokenRecord:
    """
    Entrée du store. La consommation d'un token supprime son entrée:
    used reste False dans ce store et ne sert qu'à refléter le modèle de données.
    """

    expiry: float
    used: bool = False


class CsrfTokenStore:
    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._records: Dict[str, CsrfTokenRecord] = {}
        self._lock = threading.Lock()

    def issue(self) -> str:
        """Crée et enregistre un nouveau token, retourne sa valeur."""
        token = secrets.token_hex(TOKEN_BYTES)
        record = CsrfTokenRecord(expiry=self._clock() + self.ttl_seconds)
        with self._lock:
            self._records[token] = record
        return token

    def validate(self, token: Optional[str]) -> bool:
        """
        Consomme le token s'il est valide.
        - absent: False, aucune modification
        - expiré ou déjà utilisé: supprimé, False
        - sinon: supprimé, True
        L'appelant ne peut pas distinguer les causes d'échec.
        """
        if not token:
            return False
        with self._lock:
            record = self._records.pop(token, None)
        if record is None:
            return False
        if self._clock() > record.expiry or record.used:
            return False
        return True

    def sweep(self) -> int:
        """Supprime les tokens expirés, retourne le nombre supprimé."""
        now = self._clock()
        with self._lock:
            expired = [t for t, r in self._records.items() if now > r.expiry]
            for t in expired:
                del self._records[t]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, token: object) -> bool:
        with self._lock:
            return token in self._records
