"""Boutique Pawsitive Peace: checkout Stripe, webhook de confirmation et emails transactionnels."""
