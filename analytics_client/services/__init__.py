"""Services for the analytics chat client."""
from .frame_decoder import FrameDecoder, SSEEvent, iter_events, aiter_events
from .event_dispatcher import dispatch, is_terminal
from .turn_builder import TurnBuilder
from .analytics_api import AnalyticsAPI, AnalyticsError, AnalyticsClientError
from .drill_down import DrillDownStateMachine, synthesize_drill_query
from .pinned_view import PinnedViewAggregator
from .conversation_session import ConversationSession
from .bookmark_store import BookmarkStore
from .health_monitor import HealthMonitor, BackendStatus

__all__ = ['FrameDecoder', 'SSEEvent', 'iter_events', 'aiter_events', 'dispatch', 'is_terminal', 'TurnBuilder', 'AnalyticsAPI', 'AnalyticsError', 'AnalyticsClientError', 'DrillDownStateMachine', 'synthesize_drill_query', 'PinnedViewAggregator', 'ConversationSession', 'BookmarkStore', 'HealthMonitor', 'BackendStatus']
