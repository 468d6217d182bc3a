"""
Conversation layer: flow engine, navigation commands and the flows themselves.

Import concrete classes from their modules, e.g.
    from panikkar.services.conversation.conversation_manager import ConversationManager
"""
