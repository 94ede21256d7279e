##########################################################################################
#
# Script name: errors.py
#
# Description: Exception hierarchy for the RSS content flow.
#
##########################################################################################


# ****************************************************************************************
# Exceptions
# ****************************************************************************************

class Error(Exception):
    '''
    Base class for exceptions in this package.
    '''
    pass


class ConfigurationError(Error):
    '''
    A required credential or configuration value is missing or malformed.
    Fatal to the run.
    '''
    pass


class SourceFetchError(Error):
    '''
    A single feed could not be fetched or parsed.
    '''
    def __init__(self, url, reason):
        self.url = url
        self.reason = reason
        self.message = f'Failed to fetch feed {url}: {reason}'
        super().__init__(self.message)


class GenerationFailure(Error):
    '''
    The text generation service failed or returned unusable content.
    '''
    pass


class PublishFailure(Error):
    '''
    The publishing target rejected the post or could not be reached.
    '''
    pass
