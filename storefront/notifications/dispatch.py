import logging
from typing import Optional

from .email import EmailNotifier

logger = logging.getLogger(__name__)


async def dispatch_order_confirmation(
    notifier: EmailNotifier, email: str, name: Optional[str], order_id: str
) -> bool:
    """
    Tâche de fond du webhook: envoie la confirmation de commande.
    Le résultat n'influence pas la réponse HTTP déjà envoyée à Stripe;
    un échec est journalisé ici et n'est jamais relancé automatiquement.
    """
    try:
        sent = await notifier.send_order_confirmation(email, name or "there", order_id)
    except Exception:
        logger.exception("notifications.order_confirmation crashed order=%s", order_id)
        return False
    if sent:
        logger.info("notifications.order_confirmation sent order=%s to=%s", order_id, email)
    else:
        logger.error("notifications.order_confirmation failed order=%s to=%s", order_id, email)
    return sent
