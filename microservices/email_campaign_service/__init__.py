"""
Email Campaign Service

Email campaign microservice for event registrants providing:
- Campaign creation with draft validation
- Status lifecycle (draft -> scheduled -> sent)
- Delivery and engagement stats derived from the delivery event log
- Registration lookup for campaign targeting

Port: 8252
"""

__version__ = "1.0.0"
__service__ = "email_campaign_service"
