"""
Marketplace Email Package.

Modules:
- client: EmailClient that posts messages to the configured email API
- notifier: EmailNotifier, the transactional messages the services send
"""
