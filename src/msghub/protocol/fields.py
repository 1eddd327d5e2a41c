"""Protocol constants.

Keep these in one place to avoid stringly-typed message handling.
"""

# Envelope type tags.
REQUEST = "request"
RESPONSE = "response"
PROGRESS = "progress"

TYPES = frozenset((REQUEST, RESPONSE, PROGRESS))

# Envelope keys, as they appear on the wire.
TYPE = "type"
FROM_INSTANCE = "fromInstance"
TO_INSTANCE = "toInstance"
MESSAGE_ID = "messageID"
METHOD_NAME = "methodName"
ARGS = "args"
PROGRESS_FLAG = "progress"
EVENT_FLAG = "event"
IS_SUCCESS = "isSuccess"
DATA = "data"

# Broadcast target: a request sent to any peer listening on the channel.
WILDCARD = "*"

# Name of the local-only progress callback carried in the first argument.
ONPROGRESS = "onprogress"
