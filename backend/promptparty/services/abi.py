"""ABI fragments for the contracts this server talks to."""

GAME_ABI = [
    {"inputs": [{"name": "gameId", "type": "uint256"}], "name": "getPlayers",
     "outputs": [{"name": "", "type": "address[]"}], "stateMutability": "view", "type": "function"},
    {"inputs": [{"name": "gameId", "type": "uint256"}], "name": "getGameStatus",
     "outputs": [{"name": "", "type": "uint8"}], "stateMutability": "view", "type": "function"},
    {"inputs": [{"name": "", "type": "uint256"}], "name": "finalizeNonce",
     "outputs": [{"name": "", "type": "uint256"}], "stateMutability": "view", "type": "function"},
    {"inputs": [{"name": "", "type": "uint256"}, {"name": "", "type": "address"}], "name": "delegate",
     "outputs": [{"name": "", "type": "address"}], "stateMutability": "view", "type": "function"},
    {"inputs": [{"name": "", "type": "uint256"}, {"name": "", "type": "address"}], "name": "delegateExpiry",
     "outputs": [{"name": "", "type": "uint64"}], "stateMutability": "view", "type": "function"},
    {"inputs": [{"name": "role", "type": "bytes32"}, {"name": "account", "type": "address"}], "name": "hasRole",
     "outputs": [{"name": "", "type": "bool"}], "stateMutability": "view", "type": "function"},
    {"inputs": [{"components": [
        {"name": "gameId", "type": "uint256"},
        {"name": "players", "type": "address[]"},
        {"name": "scores", "type": "uint32[]"},
        {"name": "winners", "type": "address[]"},
        {"name": "roundCount", "type": "uint32"},
        {"name": "nonce", "type": "uint256"},
        {"name": "deadline", "type": "uint256"},
        {"name": "roundsHash", "type": "bytes32"},
    ], "name": "p", "type": "tuple"}],
     "name": "finalizeByDelegate", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [
        {"name": "gameId", "type": "uint256"},
        {"name": "players", "type": "address[]"},
        {"name": "scores", "type": "uint32[]"},
        {"name": "requestId", "type": "bytes32"},
    ], "name": "externalPushScores", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
]

_PAGE_OUTPUTS = [
    {"name": "ids", "type": "uint256[]"},
    {"name": "texts", "type": "string[]"},
    {"name": "imageRefs", "type": "uint32[]"},
    {"name": "actives", "type": "bool[]"},
]
_PAGE_INPUTS = [
    {"name": "startId", "type": "uint256"},
    {"name": "maxItems", "type": "uint256"},
    {"name": "onlyActive", "type": "bool"},
]

CARDS_ABI = [
    {"inputs": [], "name": "promptCount", "outputs": [{"name": "", "type": "uint256"}],
     "stateMutability": "view", "type": "function"},
    {"inputs": [], "name": "answerCount", "outputs": [{"name": "", "type": "uint256"}],
     "stateMutability": "view", "type": "function"},
    {"inputs": _PAGE_INPUTS, "name": "pagePrompts", "outputs": _PAGE_OUTPUTS,
     "stateMutability": "view", "type": "function"},
    {"inputs": _PAGE_INPUTS, "name": "pageAnswers", "outputs": _PAGE_OUTPUTS,
     "stateMutability": "view", "type": "function"},
]
