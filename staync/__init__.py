"""Travel microblogging API: posts, social graph, direct messages and AI captions."""
