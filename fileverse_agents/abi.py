"""
ABI fragments for the Fileverse portal contracts.

Only the functions and events used by the SDK are listed.
"""


def _param(name, type_, indexed=None):
    param = {"name": name, "type": type_, "internalType": type_}
    if indexed is not None:
        param["indexed"] = indexed
    return param


def _function(name, inputs, outputs=(), mutability="nonpayable"):
    return {
        "type": "function",
        "name": name,
        "inputs": list(inputs),
        "outputs": list(outputs),
        "stateMutability": mutability,
    }


def _event(name, inputs):
    return {"type": "event", "name": name, "inputs": list(inputs), "anonymous": False}


_FILE_HASHES = [
    _param("_metadataIPFSHash", "string"),
    _param("_contentIPFSHash", "string"),
    _param("_gateIPFSHash", "string"),
]

_FILE_EVENT_INPUTS = [
    _param("fileId", "uint256", indexed=True),
    _param("metadataIPFSHash", "string", indexed=False),
    _param("contentIPFSHash", "string", indexed=False),
    _param("gateIPFSHash", "string", indexed=False),
    _param("by", "address", indexed=True),
]

PORTAL_REGISTRY_ABI = [
    _function(
        "mint",
        [
            _param("_metadataIPFSHash", "string"),
            _param("_ownerViewDid", "string"),
            _param("_ownerEditDid", "string"),
            _param("_portalEncryptionKeyVerifier", "bytes32"),
            _param("_portalDecryptionKeyVerifier", "bytes32"),
            _param("_memberEncryptionKeyVerifier", "bytes32"),
            _param("_memberDecryptionKeyVerifier", "bytes32"),
        ],
    ),
    _event(
        "Mint",
        [
            _param("account", "address", indexed=True),
            _param("portal", "address", indexed=True),
        ],
    ),
]

PORTAL_ABI = [
    _function(
        "addFile",
        _FILE_HASHES + [_param("filetype", "uint8"), _param("version", "uint256")],
    ),
    _function(
        "editFile",
        [_param("fileId", "uint256")]
        + _FILE_HASHES
        + [_param("filetype", "uint8"), _param("version", "uint256")],
    ),
    _function(
        "files",
        [_param("", "uint256")],
        [
            _param("metadataIPFSHash", "string"),
            _param("contentIPFSHash", "string"),
            _param("gateIPFSHash", "string"),
            _param("fileType", "uint8"),
            _param("version", "uint256"),
        ],
        mutability="view",
    ),
    _event("AddedFile", _FILE_EVENT_INPUTS),
    _event("EditedFile", _FILE_EVENT_INPUTS),
]
