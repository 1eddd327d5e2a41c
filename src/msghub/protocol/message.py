""" Class representations of the three envelope variants exchanged between
    two hubs. Every envelope carries the instance identifier of its sender
    and a message identification number scoped to that sender; the
    combination is what ties a :class:`Response` or :class:`Progress` back
    to the :class:`Request` that caused it.

    The on-the-wire representation is a plain dictionary, see
    :func:`Envelope.to_dict` and :func:`from_dict`; turning that dictionary
    into bytes is the responsibility of the transport.
"""

from . import fields


class Envelope:
    """ The :class:`Envelope` is the common base for all messages. The
        *from_instance* is the sending hub's instance identifier, the
        *message_id* is the sender's sequence number for the correspondence,
        and *to_instance* names the hub the envelope is addressed to; a
        *to_instance* of None means any hub on the channel may accept it.
    """

    type = None

    def __init__(self, from_instance, message_id, to_instance=None):

        self.from_instance = from_instance
        self.message_id = message_id
        self.to_instance = to_instance


    def __eq__(self, other):

        if type(self) is not type(other):
            return NotImplemented

        return self.to_dict() == other.to_dict()


    def __repr__(self):
        return "%s(%r)" % (self.__class__.__name__, self.to_dict())


    @property
    def key(self):
        """ The correlation key for this envelope: the instance that issued
            the original request, and that request's message id.
        """

        return (self.from_instance, self.message_id)


    def to_dict(self):

        result = dict()
        result[fields.FROM_INSTANCE] = self.from_instance

        if self.to_instance is not None:
            result[fields.TO_INSTANCE] = self.to_instance

        result[fields.MESSAGE_ID] = self.message_id
        result[fields.TYPE] = self.type

        return result


# end of class Envelope



class Request(Envelope):
    """ A request for the remote hub to invoke *method_name* with *args*.
        The *progress* flag indicates that the first argument had a
        progress callback attached before it was stripped for transmission.
        Any *extra* dictionary entries are carried verbatim as additional
        envelope fields.
    """

    type = fields.REQUEST

    def __init__(self, from_instance, message_id, method_name, args=(), to_instance=None, progress=False, extra=None):

        Envelope.__init__(self, from_instance, message_id, to_instance)

        self.method_name = method_name
        self.args = list(args)
        self.progress = bool(progress)
        self.extra = dict(extra) if extra else dict()


    @property
    def is_event(self):
        """ True if this request does not expect any response.
        """

        return bool(self.extra.get(fields.EVENT_FLAG))


    def to_dict(self):

        result = dict(self.extra)
        result.update(Envelope.to_dict(self))
        result[fields.METHOD_NAME] = self.method_name
        result[fields.ARGS] = list(self.args)

        if self.progress:
            result[fields.PROGRESS_FLAG] = True

        return result


# end of class Request



class Response(Envelope):
    """ The single terminal answer to a :class:`Request`. *is_success*
        determines whether *data* is a result or an error payload.
    """

    type = fields.RESPONSE

    def __init__(self, from_instance, message_id, to_instance, is_success, data=None):

        Envelope.__init__(self, from_instance, message_id, to_instance)

        self.is_success = bool(is_success)
        self.data = data


    @property
    def key(self):
        return (self.to_instance, self.message_id)


    def to_dict(self):

        result = Envelope.to_dict(self)
        result[fields.IS_SUCCESS] = self.is_success
        result[fields.DATA] = self.data

        return result


# end of class Response



class Progress(Envelope):
    """ An intermediate update for a pending :class:`Request`. Zero or more
        may precede the terminal :class:`Response`.
    """

    type = fields.PROGRESS

    def __init__(self, from_instance, message_id, to_instance, data=None):

        Envelope.__init__(self, from_instance, message_id, to_instance)
        self.data = data


    @property
    def key(self):
        return (self.to_instance, self.message_id)


    def to_dict(self):

        result = Envelope.to_dict(self)
        result[fields.DATA] = self.data

        return result


# end of class Progress



_reserved = set((fields.TYPE, fields.FROM_INSTANCE, fields.TO_INSTANCE,
                fields.MESSAGE_ID, fields.METHOD_NAME, fields.ARGS,
                fields.PROGRESS_FLAG))


def from_dict(raw):
    """ Interpret the dictionary *raw* as an :class:`Envelope`. None is
        returned if *raw* does not carry a recognizable type tag; fields
        missing from an otherwise recognizable envelope are left as None,
        and will fail the validity checks below.
    """

    if isinstance(raw, Envelope):
        return raw

    try:
        type = raw[fields.TYPE]
    except (KeyError, TypeError):
        return None

    if type not in fields.TYPES:
        return None

    from_instance = raw.get(fields.FROM_INSTANCE)
    to_instance = raw.get(fields.TO_INSTANCE)
    message_id = raw.get(fields.MESSAGE_ID)

    if type == fields.REQUEST:
        args = raw.get(fields.ARGS)
        if args is None:
            args = ()

        extra = dict()
        for key,value in raw.items():
            if key in _reserved:
                continue
            extra[key] = value

        progress = raw.get(fields.PROGRESS_FLAG, False)
        method_name = raw.get(fields.METHOD_NAME)
        return Request(from_instance, message_id, method_name, args, to_instance, progress, extra)

    if type == fields.RESPONSE:
        is_success = raw.get(fields.IS_SUCCESS, False)
        data = raw.get(fields.DATA)
        return Response(from_instance, message_id, to_instance, is_success, data)

    data = raw.get(fields.DATA)
    return Progress(from_instance, message_id, to_instance, data)



def is_request(msg, instance_id):
    """ Return True if *msg* is a :class:`Request` that the hub identified
        by *instance_id* should handle: it must come from some other hub,
        carry a message id, and either be unaddressed or addressed to us.
    """

    if not isinstance(msg, Request):
        return False

    if not msg.from_instance or msg.from_instance == instance_id:
        return False

    if not msg.message_id:
        return False

    if msg.to_instance and msg.to_instance != instance_id:
        return False

    return True


def _answers(request, msg, instance_id):

    if msg.to_instance != instance_id:
        return False

    if msg.to_instance != request.from_instance:
        return False

    return msg.message_id == request.message_id


def is_response(request, msg, instance_id):
    """ Return True if *msg* is the terminal :class:`Response` to the
        original *request* issued by the hub identified by *instance_id*.
    """

    return isinstance(msg, Response) and _answers(request, msg, instance_id)


def is_progress(request, msg, instance_id):
    """ Return True if *msg* is a :class:`Progress` update for the
        original *request* issued by the hub identified by *instance_id*.
    """

    return isinstance(msg, Progress) and _answers(request, msg, instance_id)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
