"""
the user- and administrator-facing message texts returned in access results and raised in
exceptions.
"""

strings = {
    'usernotloggedin':      "You are currently not logged in at ownCloud.",
    'webdaverror':          "WebDAV error code {0}",
    'socketerror':          "The WebDAV socket could not be opened.",
    'ocserror':             "An error with the OCS sharing API occurred.",
    'notcreated':           "Folder {0} not created. ",
    'unexpectedcode':       "An unexpected response status code ({0}) was received.",
    'technicalnotloggedin': "The system account is not logged in or does not have authorisation "
                            "in the remote system.",
    'noissuer':             "Please check the module settings. No OAuth 2 issuer is selected.",
    'issuernotfound':       "Please check the module settings. The selected OAuth 2 issuer {0} "
                            "no longer exists.",
    'notconnected':         "Please check the module settings. No system account is connected "
                            "for the OAuth 2 issuer {0}.",
    'endpointmissing':      "Endpoint {0} not defined.",
    'endpointunparseable':  "Endpoint {0} is not a valid URL.",

    'issuervalidation_without':      "You have not selected an ownCloud server as the OAuth 2 "
                                     "issuer yet.",
    'issuervalidation_valid':        "Currently the {0} issuer is valid and active.",
    'issuervalidation_invalid':      "Currently the {0} issuer is active, however it does not "
                                     "implement all necessary endpoints. The repository will not "
                                     "work. Please choose a valid issuer.",
    'issuervalidation_notconnected': "Currently the valid {0} issuer is active, but no system "
                                     "account is connected. The repository will not work. Please "
                                     "connect a system account.",
}

def get_string(key: str, a=None) -> str:
    """
    return the message text with the given key, with ``a`` inserted into it (if it takes a value)
    :raises KeyError:  if the key is not recognized
    """
    msg = strings[key]
    if a is not None:
        msg = msg.format(a)
    return msg
