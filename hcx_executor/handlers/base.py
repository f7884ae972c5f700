"""Base handler class for HCX resource operations"""

import logging
from typing import Optional

from hcx_executor.hcx_api.adapter import HcxSession
from hcx_executor.hcx_api.helpers import AsyncOperationPoller
from hcx_executor.hcx_api.resolver import NamedEntityResolver


class BaseHandler:
    """Base class for all resource handlers with shared utilities"""

    def __init__(self, session: HcxSession, logger: Optional[logging.Logger] = None):
        """
        Initialize handler with the session every call goes through

        Args:
            session: Authenticated (or lazily authenticating) HcxSession
            logger: Optional logger, defaults to the module logger of the handler
        """
        self.session = session
        self.logger = logger or logging.getLogger(type(self).__module__)
        self.poller = AsyncOperationPoller(session)

    def resolver(self) -> NamedEntityResolver:
        """
        Fresh resolver scoped to one operation

        Lookups repeated inside the operation hit the memo; the next operation
        starts from an empty one.
        """
        return NamedEntityResolver(self.session, memoize=True, logger=self.logger)
