from notmodified._headers import Headers as Headers
from notmodified._models import (
    EmptyStream as EmptyStream,
    Request as Request,
    Response as Response,
)
from notmodified._conditional import (
    ETAG as ETAG,
    IF_MODIFIED_SINCE as IF_MODIFIED_SINCE,
    IF_NONE_MATCH as IF_NONE_MATCH,
    LAST_MODIFIED as LAST_MODIFIED,
    ConditionalOptions as ConditionalOptions,
    etag_matches as etag_matches,
    is_eligible as is_eligible,
    is_fresh as is_fresh,
    not_modified_headers as not_modified_headers,
    not_modified_since as not_modified_since,
    should_respond_not_modified as should_respond_not_modified,
)
from notmodified._async._evaluator import (
    AsyncBodyProxy as AsyncBodyProxy,
    AsyncConditionalEvaluator as AsyncConditionalEvaluator,
)
from notmodified._sync._evaluator import (
    SyncBodyProxy as SyncBodyProxy,
    SyncConditionalEvaluator as SyncConditionalEvaluator,
)

__version__ = "0.1.0"

__all__ = (
    ## Models
    "Request",
    "Response",
    "EmptyStream",
    ## Headers
    "Headers",
    "ETAG",
    "LAST_MODIFIED",
    "IF_NONE_MATCH",
    "IF_MODIFIED_SINCE",
    ## Decision
    "ConditionalOptions",
    "etag_matches",
    "not_modified_since",
    "is_fresh",
    "is_eligible",
    "should_respond_not_modified",
    "not_modified_headers",
    # Evaluators
    "AsyncBodyProxy",
    "AsyncConditionalEvaluator",
    "SyncBodyProxy",
    "SyncConditionalEvaluator",
)
